"""Default values shared by the stackpilot commands."""

DEFAULT_PROJECT_NAME = "milvus"
DEFAULT_DISPLAY_NAME = "Milvus"
DEFAULT_DESCRIPTOR_NAME = "docker-compose.yml"
DEFAULT_UPSTREAM_URL = (
    "https://github.com/milvus-io/milvus/releases/latest/download/"
    "milvus-standalone-docker-compose.yml"
)
DEFAULT_IMAGE_REPOSITORY = "milvusdb/milvus"
DEFAULT_CONFIG_NAME = ".stackpilot.yml"

BACKUP_SUFFIX = ".backup"
CANDIDATE_SUFFIX = ".new"
ROTATED_LOG_SUFFIX = ".old"

READINESS_TIMEOUT_SECONDS = 300
READINESS_INTERVAL_SECONDS = 5
HEALTH_INTERVAL_SECONDS = 30
SETTLE_SECONDS = 10
DOWNLOAD_TIMEOUT_SECONDS = 60.0
COMMAND_TIMEOUT_SECONDS = 900.0
LOG_ROTATE_BYTES = 10 * 1024 * 1024

EXIT_SUCCESS = 0
EXIT_FAILURE = 1

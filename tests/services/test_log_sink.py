import logging

from stackpilot.services.log_sink import LogSinkService


def test_rotate_moves_oversized_log_to_single_old_generation(tmp_path):
    log_file = tmp_path / "logs" / "milvus-docker-compose.log"
    log_file.parent.mkdir()
    log_file.write_bytes(b"x" * 2048)
    (tmp_path / "logs" / "milvus-docker-compose.log.old").write_text("older", encoding="utf-8")
    sink = LogSinkService(log_file, threshold_bytes=1024)

    reason = sink.rotate(new_session=False)

    assert "rotated due to size (2048 bytes)" in reason
    assert sink.rotated_file.read_bytes() == b"x" * 2048
    assert sorted(path.name for path in log_file.parent.iterdir()) == [
        "milvus-docker-compose.log",
        "milvus-docker-compose.log.old",
    ]
    assert log_file.stat().st_size < 1024


def test_rotate_on_new_session_keeps_previous_log(tmp_path):
    log_file = tmp_path / "stack.log"
    log_file.write_text("previous run\n", encoding="utf-8")
    sink = LogSinkService(log_file)

    reason = sink.rotate(new_session=True)

    assert reason.startswith("New session started")
    assert sink.rotated_file.read_text(encoding="utf-8") == "previous run\n"
    assert "New session started" in log_file.read_text(encoding="utf-8")


def test_rotate_leaves_small_log_alone_outside_new_session(tmp_path):
    log_file = tmp_path / "stack.log"
    log_file.write_text("appending\n", encoding="utf-8")
    sink = LogSinkService(log_file)

    assert sink.rotate(new_session=False) is None
    assert not sink.rotated_file.exists()


def test_rotate_creates_log_directory(tmp_path):
    sink = LogSinkService(tmp_path / "nested" / "dir" / "stack.log")

    assert sink.rotate(new_session=True) is None
    assert (tmp_path / "nested" / "dir").is_dir()


def test_attach_writes_timestamped_records(tmp_path):
    log_file = tmp_path / "stack.log"
    sink = LogSinkService(log_file)
    logger = logging.getLogger("stackpilot.tests.log_sink")
    logger.setLevel(logging.INFO)

    sink.attach(logger)
    logger.info("Docker is ready!")
    sink.detach(logger)

    line = log_file.read_text(encoding="utf-8").strip()
    assert line.endswith("[INFO] Docker is ready!")
    assert line[:4].isdigit()
    assert sink.handler is None

import pytest
from rich.console import Console

from stackpilot.errors import StackError
from stackpilot.services.download import DownloadService


class DummyLogger:
    def info(self, *_args, **_kwargs):
        return None

    def warning(self, *_args, **_kwargs):
        return None


class FakeResponse:
    def __init__(self, payload: bytes, fail_midway: bool = False, error_cls=None):
        self.payload = payload
        self.fail_midway = fail_midway
        self.error_cls = error_cls
        self.headers = {"Content-Length": str(len(payload))}

    def raise_for_status(self):
        return None

    def iter_content(self, chunk_size=8192):
        yield self.payload
        if self.fail_midway:
            raise self.error_cls("connection reset")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


class FakeRequestsModule:
    class RequestException(Exception):
        pass

    def __init__(self, payload: bytes, fail_midway: bool = False):
        self.payload = payload
        self.fail_midway = fail_midway
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        return FakeResponse(self.payload, self.fail_midway, self.RequestException)


class FlakyRequestsModule(FakeRequestsModule):
    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if len(self.calls) == 1:
            raise self.RequestException("temporary download error")
        return FakeResponse(self.payload)


def _service(requests_module, **kwargs):
    return DownloadService(
        logger=DummyLogger(),
        console=Console(record=True),
        requests_module=requests_module,
        **kwargs,
    )


def test_download_file_writes_payload(tmp_path):
    requests_module = FakeRequestsModule(payload=b"services: {}\n")
    dest = tmp_path / ".docker-compose.yml.new"

    _service(requests_module, timeout=12).download_file("https://example.com/compose.yml", dest)

    assert dest.read_bytes() == b"services: {}\n"
    assert requests_module.calls[0][1]["timeout"] == 12


def test_download_file_rejects_plain_http_by_default(tmp_path):
    requests_module = FakeRequestsModule(payload=b"unused")

    with pytest.raises(StackError, match="insecure HTTP"):
        _service(requests_module).download_file("http://example.com/compose.yml", tmp_path / "out")

    assert requests_module.calls == []


def test_download_file_allows_http_when_enabled(tmp_path):
    requests_module = FakeRequestsModule(payload=b"ok")
    dest = tmp_path / "out"

    _service(requests_module, allow_insecure_http=True).download_file("http://example.com/c.yml", dest)

    assert dest.read_bytes() == b"ok"


def test_download_file_removes_partial_file_on_error(tmp_path):
    requests_module = FakeRequestsModule(payload=b"partial", fail_midway=True)
    dest = tmp_path / ".docker-compose.yml.new"

    with pytest.raises(StackError, match="Failed to download"):
        _service(requests_module).download_file("https://example.com/compose.yml", dest)

    assert not dest.exists()


def test_download_file_rejects_empty_payload(tmp_path):
    dest = tmp_path / "out"

    with pytest.raises(StackError, match="is empty"):
        _service(FakeRequestsModule(payload=b"")).download_file("https://example.com/c.yml", dest)

    assert not dest.exists()


def test_download_service_retries_transient_request_errors(tmp_path, monkeypatch):
    import stackpilot.services.download as download_module

    monkeypatch.setattr(download_module.time, "sleep", lambda *_args: None)
    requests_module = FlakyRequestsModule(payload=b"retried")
    dest = tmp_path / "out"

    _service(requests_module, retry_count=1).download_file("https://example.com/c.yml", dest)

    assert len(requests_module.calls) == 2
    assert dest.read_bytes() == b"retried"

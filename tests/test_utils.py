import json

import pytest

from repoinfo import __main__ as entrypoint
from repoinfo.core import s3util


def test_entrypoint_delegates_to_cli(monkeypatch: pytest.MonkeyPatch):
    captured: dict[str, object] = {}

    def fake_main(argv, prog):  # pragma: no cover - exercised in test
        captured.update(argv=argv, prog=prog)
        return 42

    monkeypatch.setattr(entrypoint.cli, "main", fake_main)
    result = entrypoint.main(["--verbose"])
    assert result == 42
    assert captured["argv"] == ["--verbose"]
    assert captured["prog"] == "python -m repoinfo"


def test_entrypoint_usage_names_module(capsys: pytest.CaptureFixture):
    with pytest.raises(SystemExit):
        entrypoint.main(["--help"])
    assert capsys.readouterr().out.startswith("usage: python -m repoinfo")


class DummyS3Client:
    def __init__(self) -> None:
        self.put_calls: list[dict] = []

    def put_object(self, **kwargs) -> None:
        self.put_calls.append(kwargs)


def test_s3util_upload_json():
    client = DummyS3Client()
    payload = {"git": {"Branch": "main"}}
    assert s3util.upload_json("bucket", "builds/info.json", payload, client=client) is True
    call = client.put_calls[0]
    assert call["Bucket"] == "bucket"
    assert call["Key"] == "builds/info.json"
    assert call["ContentType"] == "application/json"
    assert json.loads(call["Body"].decode("utf-8")) == payload


def test_s3util_skips_without_boto3(monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture):
    monkeypatch.setattr(s3util, "boto3", None)
    with caplog.at_level("WARNING", logger=s3util.__name__):
        assert s3util.upload_json("bucket", "key.json", {}) is False
    assert "skipping upload for s3://bucket/key.json" in caplog.text

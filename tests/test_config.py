import pytest

from acl_bundle.config import Config, load_config


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("ACL_KEYS_DIR", "/srv/keys")
    monkeypatch.setenv("AWS_REGION", "eu-central-1")
    monkeypatch.setenv("ACL_HTTP_TIMEOUT", "2.5")
    cfg = Config()
    assert cfg.KEYS_DIR == "/srv/keys"
    assert cfg.REGION == "eu-central-1"
    assert cfg.HTTP_TIMEOUT == 2.5
    assert cfg.IDENTITY == "uhppoted"


def test_yaml_overrides_env(tmp_path, monkeypatch):
    monkeypatch.setenv("AWS_REGION", "eu-central-1")
    p = tmp_path / "acl-bundle.yaml"
    p.write_text("region: ap-southeast-2\nIDENTITY: svc-a\nunknown_key: 1\n")
    cfg = load_config(str(p))
    assert cfg.REGION == "ap-southeast-2"
    assert cfg.IDENTITY == "svc-a"
    assert cfg._raw["unknown_key"] == 1


def test_config_file_from_env(tmp_path, monkeypatch):
    p = tmp_path / "custom.yml"
    p.write_text("KEY_FILE: /srv/keys/signer\n")
    monkeypatch.setenv("ACL_BUNDLE_CONFIG", str(p))
    assert load_config().KEY_FILE == "/srv/keys/signer"


def test_explicit_overrides_skip_none(tmp_path):
    p = tmp_path / "acl-bundle.yaml"
    p.write_text("PROFILE: uploader\n")
    cfg = load_config(str(p), PROFILE=None, REGION="us-west-2")
    assert cfg.PROFILE == "uploader"
    assert cfg.REGION == "us-west-2"


def test_missing_explicit_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "nope.yaml"))


def test_non_mapping_yaml(tmp_path):
    p = tmp_path / "acl-bundle.yaml"
    p.write_text("- just\n- a list\n")
    with pytest.raises(ValueError):
        load_config(str(p))


def test_yaml_numbers_are_coerced(tmp_path):
    p = tmp_path / "acl-bundle.yaml"
    p.write_text('LOG_FILE_SIZE: "10"\nhttp_timeout: "2.5"\n')
    cfg = load_config(str(p))
    assert cfg.LOG_FILE_SIZE == 10
    assert cfg.HTTP_TIMEOUT == 2.5


@pytest.mark.parametrize("value", ["ten", "null", "[1, 2]"])
def test_yaml_bad_number(tmp_path, value):
    p = tmp_path / "acl-bundle.yaml"
    p.write_text(f"LOG_FILE_SIZE: {value}\n")
    with pytest.raises(ValueError) as exc:
        load_config(str(p))
    assert "LOG_FILE_SIZE" in str(exc.value)

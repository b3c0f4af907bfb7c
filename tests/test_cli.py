import pytest

from gsrelay.cli import main
from gsrelay.config import BridgeRuntimeConfig, apply_config_data, load_toml


def test_first_run_writes_default_config(tmp_path) -> None:
    path = tmp_path / "conf" / "gsrelay.toml"
    with pytest.raises(SystemExit) as exc:
        main(["--config", str(path)])
    assert exc.value.code == 0
    assert path.exists()

    cfg = apply_config_data(BridgeRuntimeConfig(), load_toml(str(path)))
    assert cfg.socket_mode == 0o777
    assert cfg.relays == {}
    assert cfg.log_discord_level == "WARNING"


def test_unconfigured_credentials_exit_with_error(tmp_path) -> None:
    path = tmp_path / "gsrelay.toml"
    with pytest.raises(SystemExit):
        main(["--config", str(path)])

    with pytest.raises(SystemExit) as exc:
        main(["--config", str(path)])
    assert exc.value.code == 1

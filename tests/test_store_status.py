import json
from pathlib import Path

from powersourced import config, status
from powersourced.store import JsonFileStore, MemoryStore, load_state


def test_memory_store_notifies_subscribers():
    seen = []
    store = MemoryStore()
    store.subscribe(lambda key, record: seen.append((key, record["Name"])))
    store.set_value("InternalBattery-0", {"Name": "Main"})
    assert seen == [("InternalBattery-0", "Main")]
    assert store.get_value("InternalBattery-0") == {"Name": "Main"}


def test_memory_store_notifies_removal():
    seen = []
    store = MemoryStore()
    store.set_value("InternalBattery-0", {"Name": "Main"})
    store.subscribe(lambda key, record: seen.append((key, record)))

    store.remove_value("InternalBattery-0")
    store.remove_value("InternalBattery-1")
    assert seen == [("InternalBattery-0", None)]
    assert store.keys() == []


def test_json_store_persists_and_reloads(tmp_path: Path):
    path = tmp_path / "state" / "power_sources.json"
    store = JsonFileStore(path)
    store.set_value("InternalBattery-0", {"Current Capacity": 57})
    assert json.loads(path.read_text()) == {"InternalBattery-0": {"Current Capacity": 57}}
    assert not (tmp_path / "state" / "power_sources.json.tmp").exists()

    assert JsonFileStore(path).get_value("InternalBattery-0") == {"Current Capacity": 57}

    store.remove_value("InternalBattery-0")
    assert load_state(path) == {}


def test_load_state_tolerates_garbage(tmp_path: Path):
    path = tmp_path / "state.json"
    path.write_text("{truncated")
    assert load_state(path) == {}
    assert load_state(tmp_path / "missing.json") == {}


def _record(**overrides):
    record = {
        "Is Present": True,
        "Is Charging": False,
        "Current Capacity": 57,
        "Time to Empty": 125,
        "Time to Full Charge": 0,
        "Power Source State": "Battery Power",
        "BatteryHealth": "Good",
    }
    record.update(overrides)
    return record


def test_format_time_remaining():
    assert status.format_time_remaining(_record()) == "2h 5m remaining"
    assert status.format_time_remaining(_record(**{"Time to Empty": 42})) == "42m remaining"
    assert status.format_time_remaining(_record(**{"Time to Empty": -1})) == "Calculating..."
    assert status.format_time_remaining(
        _record(**{"Is Charging": True, "Time to Full Charge": 65, "Time to Empty": 0})
    ) == "1h 5m to full"
    assert status.format_time_remaining(
        _record(**{"Time to Empty": 0, "Power Source State": "AC Power"})
    ) == "Charged"


def test_format_status_lines():
    lines = status.format_status(_record(**{"Is Charging": True, "Time to Full Charge": -1}))
    assert lines == ["> 57% CHG", "${color4}  Calculating..."]

    lines = status.format_status(_record(BatteryHealth="Fair"))
    assert lines[-1] == "${color4}  Health: Fair"

    assert status.format_status(_record(**{"Is Present": False})) == ["> --"]


def test_status_main(tmp_path: Path, capsys):
    path = tmp_path / "power_sources.json"
    assert status.main([str(path)]) == 0
    assert capsys.readouterr().out == "> N/A\n"

    JsonFileStore(path).set_value("InternalBattery-0", _record())
    status.main([str(path)])
    assert capsys.readouterr().out.splitlines() == ["> 57%", "${color4}  2h 5m remaining"]


def test_settings_merge(tmp_path: Path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"poll_interval": 10, "bogus": True}))
    settings = config.load_settings(path)
    assert settings["poll_interval"] == 10
    assert settings["wake_resync_delay"] == config.WAKE_RESYNC_DELAY
    assert "bogus" not in settings


def test_settings_defaults_when_unreadable(tmp_path: Path):
    path = tmp_path / "settings.json"
    path.write_text("nope")
    assert config.load_settings(path) == config.DEFAULT_SETTINGS
    assert config.load_settings(tmp_path / "missing.json") == config.DEFAULT_SETTINGS

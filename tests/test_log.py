import pytest

from pixiugate import log


@pytest.fixture(autouse=True)
def _restore_logger():
    yield
    log.init_logger(None)


def _write_conf(tmp_path, level="debug"):
    out = tmp_path / "out.log"
    conf = tmp_path / "log.yml"
    conf.write_text(f"level: {level}\nencoding: console\noutputPaths:\n  - {out}\n")
    return conf, out


class _Recorder:
    def __init__(self):
        self.calls = []

    def __getattr__(self, name):
        def record(*args):
            self.calls.append((name, args))

        return record


def test_init_log_empty_name():
    with pytest.raises(log.LogConfigError) as info:
        log.init_log("")
    assert str(info.value) == "log configure file name is nil"


def test_init_log_wrong_suffix(tmp_path):
    path = str(tmp_path / "log.xml")
    with pytest.raises(log.LogConfigError) as info:
        log.init_log(path)
    assert str(info.value) == f"log configure file name {path} suffix must be .yml"


def test_init_log_missing_file(tmp_path):
    path = str(tmp_path / "logger.yml")
    with pytest.raises(log.LogConfigError) as info:
        log.init_log(path)
    assert str(info.value).startswith(f"read file:{path}, error:")


def test_init_log_failure_still_installs_a_logger():
    with pytest.raises(log.LogConfigError):
        log.init_log("")
    assert log.set_logger_level("info") is True


def test_init_log_bad_yaml(tmp_path):
    conf = tmp_path / "log.yml"
    conf.write_text("level: [\n")
    with pytest.raises(log.LogConfigError) as info:
        log.init_log(str(conf))
    assert str(info.value).startswith("[Unmarshal]init logger error:")


def test_init_log_unknown_level(tmp_path):
    conf = tmp_path / "log.yml"
    conf.write_text("level: loud\n")
    with pytest.raises(log.LogConfigError) as info:
        log.init_log(str(conf))
    assert "loud" in str(info.value)


def test_init_log_writes_every_level(tmp_path):
    conf, out = _write_conf(tmp_path)
    log.init_log(str(conf))
    assert log.set_logger_level("debug") is True
    log.debug("debug")
    log.info("info")
    log.warn("warn")
    log.error("error")
    log.debugf("%s", "debugf")
    log.infof("%s", "infof")
    log.warnf("%s", "warnf")
    log.errorf("%s", "errorf")
    lines = out.read_text().splitlines()
    assert len(lines) == 8
    assert [line.split("\t")[-1] for line in lines] == [
        "debug", "info", "warn", "error", "debugf", "infof", "warnf", "errorf",
    ]
    assert lines[2].split("\t")[1] == "WARN"


def test_set_level(tmp_path):
    conf, out = _write_conf(tmp_path)
    log.init_log(str(conf))
    log.debug("d1")
    log.info("i1")

    assert log.set_logger_level("info") is True
    log.debug("d2")
    log.info("i2")

    log.set_logger(log.get_logger().logger)
    assert log.set_logger_level("debug") is False
    log.debug("d3")
    log.info("i3")

    messages = [line.split("\t")[-1] for line in out.read_text().splitlines()]
    assert messages == ["d1", "i1", "i2", "i3"]


def test_unknown_level_name_falls_back_to_info(tmp_path):
    conf, out = _write_conf(tmp_path)
    log.init_log(str(conf))
    assert log.set_logger_level("nonsense") is True
    log.debug("hidden")
    log.info("shown")
    messages = [line.split("\t")[-1] for line in out.read_text().splitlines()]
    assert messages == ["shown"]


def test_formatting_of_operands_and_verbs(tmp_path):
    conf, out = _write_conf(tmp_path)
    log.init_log(str(conf))
    assert log.set_logger_level("debug") is True
    log.info("a", 1, 2, "b")
    log.infof("%s and %d", "x", 3)
    log.infof("%v", True)
    log.infof("%v")
    messages = [line.split("\t")[-1] for line in out.read_text().splitlines()]
    assert messages == ["a1 2b", "x and 3", "true", "%!v(MISSING)"]


def test_module_functions_delegate_to_current_logger():
    recorder = _Recorder()
    log.set_logger(recorder)
    log.infof("x %s", 1)
    log.warn("w", 2)
    assert log.get_logger() is recorder
    assert recorder.calls[:2] == [("infof", ("x %s", 1)), ("warn", ("w", 2))]


def test_json_encoding_uses_encoder_keys(tmp_path):
    out = tmp_path / "out.log"
    log.init_logger(
        {
            "level": "info",
            "encoding": "json",
            "outputPaths": [str(out)],
            "encoderConfig": {"messageKey": "message", "levelKey": "lvl"},
        }
    )
    log.info("hello")
    text = out.read_text()
    assert '"message": "hello"' in text
    assert '"lvl": "info"' in text


def test_init_logger_rejects_bad_encoding():
    with pytest.raises(log.LogConfigError):
        log.init_logger({"encoding": "xml"})
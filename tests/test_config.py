from gateway import config


def test_load_key_prefers_environment(monkeypatch, tmp_path):
    key_file = tmp_path / "gemini.key"
    key_file.write_text("from-file\n")
    monkeypatch.setenv("GEMINI_API_KEY", "from-env")

    assert config.load_key(str(key_file)) == "from-env"


def test_load_key_reads_file(monkeypatch, tmp_path):
    key_file = tmp_path / "gemini.key"
    key_file.write_text("from-file\n")
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)

    assert config.load_key(str(key_file)) == "from-file"


def test_load_key_missing(monkeypatch, tmp_path):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)

    assert config.load_key(str(tmp_path / "gemini.key")) is None
    assert config.load_key(None) is None


def test_url_template_contains_model():
    assert config.GEMINI_URL_TEMPLATE.format(model="m").endswith("/models/m:generateContent")

from __future__ import annotations

import pytest
import yaml

import ecf.config as config_mod


class TestResolveDir:
    def test_from_env_var(self, monkeypatch, tmp_path):
        monkeypatch.setenv("ECF_CONFIG_DIR", str(tmp_path))
        assert config_mod._resolve_dir("ECF_CONFIG_DIR", "config") == tmp_path

    def test_project_root_fallback(self, monkeypatch, tmp_path):
        monkeypatch.delenv("ECF_CONFIG_DIR", raising=False)
        fake_root = tmp_path / "src" / "ecf"
        fake_root.mkdir(parents=True)
        config_dir = tmp_path / "config"
        config_dir.mkdir()

        # Patch __file__ so project_root resolves to tmp_path
        monkeypatch.setattr(config_mod, "__file__", str(fake_root / "config.py"))
        assert config_mod._resolve_dir("ECF_CONFIG_DIR", "config") == config_dir

    def test_platformdirs_fallback(self, monkeypatch, tmp_path):
        monkeypatch.delenv("ECF_CONFIG_DIR", raising=False)
        fake = tmp_path / "nowhere" / "src" / "ecf"
        fake.mkdir(parents=True)
        monkeypatch.setattr(config_mod, "__file__", str(fake / "config.py"))
        assert "ecf-dgii" in str(config_mod._resolve_dir("ECF_CONFIG_DIR", "config"))

    def test_get_config_dir_follows_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("ECF_CONFIG_DIR", str(tmp_path / "a"))
        assert config_mod.get_config_dir() == tmp_path / "a"
        monkeypatch.setenv("ECF_CONFIG_DIR", str(tmp_path / "b"))
        assert config_mod.get_config_dir() == tmp_path / "b"


class TestQrBaseUrl:
    def test_default(self, monkeypatch):
        monkeypatch.delenv("ECF_QR_BASE_URL", raising=False)
        assert config_mod.get_qr_base_url() == "https://dgii.gov.do/ecf/consulta"

    def test_override(self, monkeypatch):
        monkeypatch.setenv("ECF_QR_BASE_URL", "https://ecf.test/consulta")
        assert config_mod.get_qr_base_url() == "https://ecf.test/consulta"


class TestLoadYaml:
    def test_reads_dict(self, tmp_path):
        path = tmp_path / "x.yaml"
        path.write_text("rnc: '130000000'\nrazon_social: Ñame SRL\n", encoding="utf-8")
        assert config_mod.load_yaml(path) == {"rnc": "130000000", "razon_social": "Ñame SRL"}

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert config_mod.load_yaml(path) == {}


class TestLoadEmitter:
    def test_loads(self, monkeypatch, config_dir, emitter_dict):
        monkeypatch.setenv("ECF_CONFIG_DIR", str(config_dir))
        assert config_mod.load_emitter() == emitter_dict

    def test_missing_file(self, monkeypatch, tmp_path):
        monkeypatch.setenv("ECF_CONFIG_DIR", str(tmp_path))
        assert config_mod.load_emitter() == {}


class TestLoadRecord:
    def test_fills_emisor_from_config(self, monkeypatch, config_dir, record_dict, tmp_path):
        monkeypatch.setenv("ECF_CONFIG_DIR", str(config_dir))
        record_dict["emisor"] = {"direccion": "Calle Nueva 1"}
        path = tmp_path / "rec.yaml"
        path.write_text(yaml.dump(record_dict, allow_unicode=True), encoding="utf-8")

        data = config_mod.load_record(path)
        assert data["emisor"]["rnc"] == "130000000"
        assert data["emisor"]["direccion"] == "Calle Nueva 1"

    def test_record_without_emisor(self, monkeypatch, config_dir, record_dict, tmp_path):
        monkeypatch.setenv("ECF_CONFIG_DIR", str(config_dir))
        del record_dict["emisor"]
        path = tmp_path / "rec.yaml"
        path.write_text(yaml.dump(record_dict, allow_unicode=True), encoding="utf-8")
        assert config_mod.load_record(path)["emisor"]["razon_social"] == "DISTRIBUIDORA CARIBE SRL"

    def test_no_emitter_config(self, monkeypatch, tmp_path, record_dict):
        monkeypatch.setenv("ECF_CONFIG_DIR", str(tmp_path / "none"))
        del record_dict["emisor"]
        path = tmp_path / "rec.yaml"
        path.write_text(yaml.dump(record_dict, allow_unicode=True), encoding="utf-8")
        assert "emisor" not in config_mod.load_record(path)

    def test_unquoted_code_rejected_on_load(self, monkeypatch, tmp_path, record_dict):
        from ecf.models.invoice import ECFData
        from ecf.services.exceptions import RecordError

        monkeypatch.setenv("ECF_CONFIG_DIR", str(tmp_path / "none"))
        cfg = tmp_path / "emitter.yaml"
        cfg.write_text(
            "rnc: '130000000'\nrazon_social: X SRL\ndireccion: Calle 1\n"
            "municipio: 010100\nprovincia: '010000'\n",
            encoding="utf-8",
        )
        record_dict["emisor"] = config_mod.load_yaml(cfg)
        path = tmp_path / "rec.yaml"
        path.write_text(yaml.dump(record_dict, allow_unicode=True), encoding="utf-8")
        with pytest.raises(RecordError, match="municipio"):
            ECFData.from_dict(config_mod.load_record(path))

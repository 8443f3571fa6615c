"""
Smoke tests for configuration loading and validation.
"""

import pytest

from main import load_config, validate_config


class TestValidateConfig:
    def test_valid_config_passes(self, valid_config):
        is_valid, error = validate_config(valid_config)

        assert is_valid is True
        assert error is None

    @pytest.mark.parametrize("section", ["model", "detection", "log_path", "log_level"])
    def test_missing_section(self, valid_config, section):
        del valid_config[section]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert section in error

    def test_missing_nms_model(self, valid_config):
        del valid_config["model"]["nms_model"]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "nms_model" in error

    def test_bad_input_shape(self, valid_config):
        valid_config["model"]["input_shape"] = [640, 640]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "input_shape" in error

    def test_non_positive_topk(self, valid_config):
        valid_config["detection"]["topk"] = 0

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "topk" in error

    def test_iou_out_of_range(self, valid_config):
        valid_config["detection"]["iou_threshold"] = 1.5

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "iou_threshold" in error

    def test_score_out_of_range(self, valid_config):
        valid_config["detection"]["score_threshold"] = -0.1

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "score_threshold" in error

    def test_negative_device_id(self, valid_config):
        valid_config["source"]["device_id"] = -1

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "device_id" in error

    def test_string_device_id_valid(self, valid_config):
        valid_config["source"]["device_id"] = "rtsp://192.168.1.1/stream"

        is_valid, _ = validate_config(valid_config)

        assert is_valid is True

    def test_invalid_scale_factor(self, valid_config):
        valid_config["pump"]["scale_factor"] = 0

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "scale_factor" in error

    def test_invalid_log_level(self, valid_config):
        valid_config["log_level"] = "VERBOSE"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "log_level" in error

    def test_invalid_upload_limit(self, valid_config):
        valid_config["web"] = {"max_upload_mb": 0}

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "max_upload_mb" in error


class TestLoadConfig:
    def test_loads_default_yaml(self, temp_config_dir):
        config = load_config(str(temp_config_dir / "config.yaml"))

        assert config["model"]["model"] == "models/yolov8n.onnx"
        assert config["detection"]["topk"] == 100

    def test_local_overrides_merge(self, temp_config_dir):
        config_yaml = temp_config_dir / "config.yaml"
        config_yaml.write_text("""
detection:
  score_threshold: 0.5
""")

        config = load_config(str(config_yaml))

        assert config["detection"]["score_threshold"] == 0.5
        assert config["detection"]["iou_threshold"] == 0.45

    def test_explicit_config_applied_last(self, temp_config_dir):
        (temp_config_dir / "config.yaml").write_text("pump:\n  fps: 10\n")
        explicit = temp_config_dir / "night.yaml"
        explicit.write_text("pump:\n  fps: 5\n")

        config = load_config(str(explicit))

        assert config["pump"]["fps"] == 5
        assert config["model"]["nms_model"] == "models/nms-yolov8.onnx"

    def test_checked_in_defaults_are_valid(self):
        import os
        repo_config = os.path.join(os.path.dirname(__file__), "..", "config", "config.yaml")

        is_valid, error = validate_config(load_config(repo_config))

        assert is_valid, error

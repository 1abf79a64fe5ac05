"""精度配置与日志配置测试。"""

import logging

import pytest

from nested_sums.config import PrecisionConfig
from nested_sums.logging_utils import configure_logging


@pytest.fixture(autouse=True)
def restore_package_logger():
    logger = logging.getLogger("nested_sums")
    saved = (list(logger.handlers), logger.level, logger.propagate)
    yield
    logger.handlers[:] = saved[0]
    logger.setLevel(saved[1])
    logger.propagate = saved[2]


class TestPrecisionConfig:
    def test_defaults(self):
        config = PrecisionConfig()
        assert config.sqrt_precision == 400
        assert config.sqrt_iterations == 32

    def test_rejects_invalid_values(self):
        with pytest.raises(ValueError):
            PrecisionConfig(sqrt_precision=-1)
        with pytest.raises(ValueError):
            PrecisionConfig(sqrt_iterations=0)


class TestConfigureLogging:
    def test_single_stdout_handler(self):
        configure_logging("DEBUG")
        logger = configure_logging("WARNING", format_type="plain")
        assert logger.name == "nested_sums"
        assert logger.level == logging.WARNING
        assert len(logger.handlers) == 1
        assert not logger.propagate

    def test_unknown_level_defaults_to_info(self):
        assert configure_logging("verbose").level == logging.INFO

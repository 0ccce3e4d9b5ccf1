"""Tests for logging setup"""

import logging

from utils.logger import setup_logging, get_logger, log_banner, ROOT_LOGGER_NAME


class TestSetupLogging:

    def test_log_file_created(self, tmp_path):
        log_file = setup_logging(tmp_path / 'logs')

        assert log_file.parent == tmp_path / 'logs'
        assert log_file.name.startswith('geojoin_') and log_file.suffix == '.log'
        assert log_file.exists()

    def test_module_messages_reach_file(self, tmp_path):
        log_file = setup_logging(tmp_path)

        get_logger('geometry_input.pipeline').debug("stage detail")

        for handler in logging.getLogger(ROOT_LOGGER_NAME).handlers:
            handler.flush()
        text = log_file.read_text(encoding='utf-8')
        assert 'geojoin.geometry_input.pipeline - DEBUG - stage detail' in text

    def test_repeat_setup_replaces_handlers(self, tmp_path):
        setup_logging(tmp_path)
        setup_logging(tmp_path)

        handlers = logging.getLogger(ROOT_LOGGER_NAME).handlers
        assert len(handlers) == 2

    def test_console_level(self, tmp_path, capsys):
        setup_logging(tmp_path, console_level=logging.WARNING)

        logger = get_logger('test')
        logger.info("hidden")
        logger.warning("shown")

        out = capsys.readouterr().out
        assert 'shown' in out
        assert 'hidden' not in out


class TestLogBanner:

    def test_title_between_rules(self, caplog):
        logger = get_logger('test')

        with caplog.at_level(logging.INFO, logger=ROOT_LOGGER_NAME):
            log_banner(logger, "SPATIAL ANALYSIS")

        assert [r.getMessage() for r in caplog.records] == ['=' * 80, 'SPATIAL ANALYSIS', '=' * 80]

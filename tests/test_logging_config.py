"""
Unit tests for the logging helpers.
"""

import logging

from logging_config import JOB_LOGGER_NAME, JobLoggerAdapter, get_job_logger, get_logger


# Tests for Module Loggers

class TestGetLogger:

    def test_prefixes_app_name(self):
        assert get_logger("services.queue_engine").name == "print_queue.services.queue_engine"

    def test_keeps_prefixed_name(self):
        assert get_logger("print_queue.app").name == "print_queue.app"


# Tests for Job Loggers

class TestJobLogger:

    def test_jobs_share_one_logger(self):
        first = get_job_logger("PS-901")
        second = get_job_logger("FO-902")

        assert isinstance(first, JobLoggerAdapter)
        assert first.logger is second.logger
        assert first.logger.name == JOB_LOGGER_NAME == "print_queue.job"

    def test_no_logger_registered_per_token(self):
        get_job_logger("PS-903").info("Marked as paid")

        assert "print_queue.job.PS-903" not in logging.Logger.manager.loggerDict

    def test_message_carries_token(self):
        msg, kwargs = get_job_logger("PS-904").process("Job ready", {})

        assert msg == "[PS-904] Job ready"
        assert kwargs == {}

    def test_records_reach_job_logger(self):
        records = []
        handler = logging.Handler(logging.INFO)
        handler.emit = records.append
        job_logger = logging.getLogger(JOB_LOGGER_NAME)
        job_logger.addHandler(handler)
        previous_level = job_logger.level
        job_logger.setLevel(logging.INFO)
        try:
            get_job_logger("PS-905").info("Priority set to HIGH")
        finally:
            job_logger.removeHandler(handler)
            job_logger.setLevel(previous_level)

        record = records[-1]
        assert record.name == "print_queue.job"
        assert record.getMessage() == "[PS-905] Priority set to HIGH"

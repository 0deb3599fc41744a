import logging
import sys
from pythonjsonlogger import jsonlogger

SERVICE_NAME = "soil-connectivity-survey"
# Survey context callers attach through `extra=`; always present in the output, null when absent
CONTEXT_FIELDS = ("session_token", "page")


def session_extra(token: str, page=None) -> dict:
    """`extra=` payload tying a log line to one survey session."""
    return {"session_token": token, "page": page}


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    def add_fields(self, log_record, record, message_dict):
        super(CustomJsonFormatter, self).add_fields(log_record, record, message_dict)
        if not log_record.get('timestamp'):
            log_record['timestamp'] = record.created
        log_record['level'] = (log_record.get('level') or record.levelname).upper()
        log_record['service'] = SERVICE_NAME
        log_record['logger'] = log_record.pop('name', record.name)
        for field in CONTEXT_FIELDS:
            log_record[field] = getattr(record, field, None)
        log_record['location'] = f"{record.module}:{record.lineno}"


def setup_logging(log_level_str: str = "INFO"):
    """
    Configures structured JSON logging for the survey service.

    Safe to call more than once: the JSON handler is only attached the first time,
    later calls just adjust the level.
    """
    log_level = getattr(logging, log_level_str.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    if any(isinstance(h.formatter, CustomJsonFormatter) for h in root_logger.handlers):
        root_logger.debug(f"JSON logging already configured, level now {logging.getLevelName(log_level)}")
        return

    log_handler = logging.StreamHandler(sys.stdout)
    log_handler.setFormatter(CustomJsonFormatter('%(timestamp)s %(level)s %(name)s %(message)s'))
    root_logger.addHandler(log_handler)
    root_logger.info(f"JSON logging configured for {SERVICE_NAME} at level {logging.getLevelName(log_level)}")

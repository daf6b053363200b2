import logging
import sys
from datetime import datetime, timezone
from pythonjsonlogger import jsonlogger

SERVICE_NAME = "socialhub-api"

# Record fields whose key contains any of these are redacted
SECRETS = ["token", "secret", "password", "key", "authorization", "code", "verifier"]

class RedactingJsonFormatter(jsonlogger.JsonFormatter):
    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        if not log_record.get("timestamp"):
            log_record["timestamp"] = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")

        log_record["level"] = record.levelname
        log_record["service_name"] = SERVICE_NAME

        for key, value in list(log_record.items()):
            if any(s in key.lower() for s in SECRETS) and isinstance(value, str):
                log_record[key] = "***REDACTED***"

def setup_logging(level: str = "INFO"):
    root = logging.getLogger()
    root.setLevel(level.upper())

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(RedactingJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s"))
    root.addHandler(handler)

    # httpx logs request URLs at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

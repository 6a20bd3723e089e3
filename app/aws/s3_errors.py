# app/aws/s3_errors.py
import logging
from typing import Any, Dict, Optional, Tuple

from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = {"NoSuchKey", "NotFound", "404"}
RETRYABLE_CODES = {"RequestTimeout", "SlowDown", "Throttling", "ThrottlingException", "InternalError"}


def _code(e: ClientError) -> str:
    return str((e.response.get("Error", {}) or {}).get("Code", ""))


def _http_status(e: ClientError) -> int:
    meta = e.response.get("ResponseMetadata", {}) or {}
    return int(meta.get("HTTPStatusCode", 500) or 500)


def is_not_found(e: BaseException) -> bool:
    return isinstance(e, ClientError) and _code(e) in NOT_FOUND_CODES


def is_retryable(e: BaseException) -> bool:
    """Throttling and 5xx are worth another attempt; everything else is final."""
    if not isinstance(e, ClientError):
        return False
    return _code(e) in RETRYABLE_CODES or 500 <= _http_status(e) < 600


def map_s3_client_error(e: ClientError) -> Tuple[int, Dict[str, Any]]:
    err = e.response.get("Error", {}) or {}
    meta = e.response.get("ResponseMetadata", {}) or {}

    code: str = err.get("Code", "")
    msg: str = err.get("Message", "") or str(e)
    http_status = _http_status(e)
    aws_request_id: Optional[str] = meta.get("RequestId")

    status = 502
    hint = None

    if code in NOT_FOUND_CODES:
        status = 404
        hint = "Key does not exist; check the configured template keys."
    elif code in {"AccessDenied"}:
        status = 403
        hint = "Check IAM/bucket policy (s3:GetObject/PutObject)."
    elif code in {"SignatureDoesNotMatch"}:
        status = 403
        hint = "Check S3_REGION against the bucket region and clock sync."
    elif code in RETRYABLE_CODES:
        status = 429
        hint = "S3 throttling/timeout; retry shortly."
    elif 500 <= http_status < 600:
        status = 502
        hint = "Temporary S3 outage; retry shortly."

    body = {
        "ok": False,
        "error": {
            "type": "S3ClientError",
            "code": code,
            "message": msg,
            "hint": hint,
            "aws_request_id": aws_request_id,
            "aws_http": http_status,
        },
    }
    return status, body

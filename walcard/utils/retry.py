# walcard/utils/retry.py
import requests
import redis
from tenacity import (
    retry,
    retry_if_exception,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_fixed,
)

from walcard.domain.errors import RemoteError
from walcard.utils.settings import NETWORK_RETRY_ATTEMPTS, NETWORK_RETRY_DELAY

#tylko te bledy sieciowe sa ponawiane, reszta idzie od razu do wywolujacego
NETWORK_ERROR_MARKERS = ("Network request failed", "Aborted", "timeout")


def is_network_error(exc: BaseException) -> bool:
    if isinstance(exc, (requests.ConnectionError, requests.Timeout)):
        return True
    if isinstance(exc, RemoteError) and isinstance(
        exc.__cause__, (requests.ConnectionError, requests.Timeout)
    ):
        return True
    text = str(exc)
    return any(marker in text for marker in NETWORK_ERROR_MARKERS)


def network_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(NETWORK_RETRY_ATTEMPTS),
        wait=wait_fixed(NETWORK_RETRY_DELAY),
        retry=retry_if_exception(is_network_error),
    )


def redis_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception_type(redis.RedisError),
    )

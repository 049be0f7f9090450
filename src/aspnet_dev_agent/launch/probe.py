"""Health check: is anything listening at the service's base URL?"""

import httpx
from loguru import logger


def is_running(base_url: str, timeout: float = 2.0, client: httpx.Client | None = None) -> bool:
    """Issue one GET with a short timeout.

    Any HTTP response, including 4xx/5xx, means the service is up.
    Transport errors mean it is not.
    """
    try:
        if client is not None:
            response = client.get(base_url, timeout=timeout)
        else:
            # Dev certificates are usually untrusted outside the .NET toolchain
            with httpx.Client(timeout=timeout, verify=False) as c:
                response = c.get(base_url)
    except httpx.TransportError as e:
        logger.debug(f"Probe of {base_url} failed: {e!r}")
        return False

    logger.debug(f"Probe of {base_url} answered {response.status_code}")
    return True

import os
from typing import Any, Mapping, Optional
from urllib.parse import urljoin

from dotenv import load_dotenv

from .utils import get_jwt_token, open_session, service_base_url


class ChainClient:
    """Thin client of the token service holding the lottery's custody wallet."""

    def __init__(self, base_fqdn: Optional[str] = None, timeout: int = 45):
        load_dotenv()
        fqdn = base_fqdn or os.getenv("BLOCKCHAIN_BASE_FQDN")
        if not fqdn:
            raise ValueError("Environment variable 'BLOCKCHAIN_BASE_FQDN' is not set")

        self.base_url = service_base_url(fqdn)
        session_info = open_session(fqdn)
        if not session_info or len(session_info) != 2:
            raise ValueError("open_session() must return (session, csrf_token)")
        self.session, self.csrf = session_info
        self.jwt = get_jwt_token(self.session, fqdn)
        self.timeout = timeout

    # -------- headers --------
    @property
    def public_headers(self) -> Mapping[str, str]:
        return {"Accept": "application/json"}

    @property
    def auth_headers(self) -> Mapping[str, str]:
        return {"Accept": "application/json", "Authorization": f"Bearer {self.jwt}"}

    @property
    def auth_csrf_headers(self) -> Mapping[str, str]:
        return {**self.auth_headers, "X-CSRFTOKEN": self.csrf}

    # -------- core request --------
    def _request(
        self,
        method: str,
        path: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        params: Optional[dict] = None,
        json: Optional[dict] = None,
    ) -> Any:
        url = urljoin(self.base_url + "/", path.lstrip("/"))
        r = self.session.request(
            method=method.upper(),
            url=url,
            headers=headers or self.public_headers,
            params=params,
            json=json,
            timeout=self.timeout,
        )
        r.raise_for_status()
        return r.json() if r.content else None

    # -------- API callers --------
    def token_balance(self, address: str, token: str) -> dict:
        return self._request(
            "GET",
            f"/api/v1/token/{token}/balance/{address}",
            headers=self.auth_headers,
        )

    def transfer_token(self, token: str, recipient: str, amount: int) -> dict:
        # Amounts are sent as decimal strings so 18-decimal values survive JSON.
        return self._request(
            "POST",
            f"/api/v1/token/{token}/transfer",
            headers=self.auth_csrf_headers,
            json={"recipient": recipient, "amount": str(amount)},
        )

    def latest_block(self) -> dict:
        return self._request("GET", "/api/v1/chain/blocks/latest")

"""HTTP-клиент Nomad: остановка задачи и классификация ответа."""

from __future__ import annotations

import logging
from typing import Dict, Optional
from urllib.parse import quote

import requests

from nomad_idle_monitor.nomad.models import StopOutcome, StopResult

LOGGER = logging.getLogger(__name__)

# Максимальная длина тела ответа, попадающая в лог
_DETAIL_LIMIT = 300
_NOT_FOUND_MARKERS = ("job not found",)
_AUTH_MARKERS = ("acl token not found", "invalid nomad token", "permission denied")


class NomadClient:
    """Отправляет в Nomad запрос ``DELETE /v1/job/<job>?purge=false``.

    Повторов нет: каждый вызов ``stop_job`` делает ровно один запрос, а
    исход возвращается как ``StopResult`` без исключений.
    """

    def __init__(
        self,
        endpoint: str,
        token: str,
        *,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.endpoint = endpoint.rstrip("/")
        self._token = token
        self._session = session or requests.Session()
        self._timeout = timeout

    def _headers(self) -> Dict[str, str]:
        return {
            "X-Nomad-Token": self._token,
            "Authorization": f"Bearer {self._token}",
            "Accept": "application/json",
        }

    def job_url(self, job_name: str) -> str:
        """Адрес задачи; имя кодируется целиком, включая '/'."""

        return f"{self.endpoint}/v1/job/{quote(job_name, safe='')}"

    def stop_job(self, job_name: str) -> StopResult:
        url = self.job_url(job_name)
        LOGGER.info(
            "Sending DELETE request to Nomad API: %s?purge=false for job '%s'", url, job_name
        )
        try:
            response = self._session.delete(
                url,
                params={"purge": "false"},
                headers=self._headers(),
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            result = StopResult(
                job_name=job_name,
                url=url,
                outcome=StopOutcome.TRANSPORT,
                detail=f"{type(exc).__name__}: {exc}",
            )
        else:
            result = self._classify(job_name, url, response)
        self._log_result(result)
        return result

    def close(self) -> None:
        self._session.close()

    @staticmethod
    def _classify(job_name: str, url: str, response: requests.Response) -> StopResult:
        status = response.status_code
        body = (response.text or "").strip()
        lowered = body.lower()
        detail = body[:_DETAIL_LIMIT]

        if 200 <= status < 300:
            outcome = StopOutcome.SUCCESS
        elif status in (401, 403):
            outcome = StopOutcome.UNAUTHORIZED
        elif status == 404:
            outcome = StopOutcome.NOT_FOUND
        # код ответа не однозначен: смотрим текст ошибки
        elif any(marker in lowered for marker in _AUTH_MARKERS):
            outcome = StopOutcome.UNAUTHORIZED
        elif any(marker in lowered for marker in _NOT_FOUND_MARKERS):
            outcome = StopOutcome.NOT_FOUND
        else:
            outcome = StopOutcome.FAILED
        return StopResult(
            job_name=job_name, url=url, outcome=outcome, status_code=status, detail=detail
        )

    def _log_result(self, result: StopResult) -> None:
        if result.outcome is StopOutcome.SUCCESS:
            LOGGER.info(
                "Nomad job stop request sent successfully for job '%s'. HTTP Status: %s. "
                "API Response: %s",
                result.job_name,
                result.status_code,
                result.detail or "<none>",
            )
        elif result.outcome is StopOutcome.NOT_FOUND:
            LOGGER.error(
                "Failed to stop Nomad job '%s'. Job not found (404) or derivation incorrect. "
                "HTTP Status: %s. Error: %s",
                result.job_name,
                result.status_code,
                result.detail,
            )
        elif result.outcome is StopOutcome.UNAUTHORIZED:
            LOGGER.error(
                "Failed to stop Nomad job '%s'. Authentication failed (401/403), check "
                "NOMAD_TOKEN. HTTP Status: %s. Error: %s",
                result.job_name,
                result.status_code,
                result.detail,
            )
        elif result.outcome is StopOutcome.TRANSPORT:
            LOGGER.error(
                "Failed to send Nomad job stop request for job '%s' to %s. Error: %s",
                result.job_name,
                self.endpoint,
                result.detail,
            )
        else:
            LOGGER.error(
                "Failed to stop Nomad job '%s'. HTTP Status: %s. Error: %s",
                result.job_name,
                result.status_code,
                result.detail,
            )

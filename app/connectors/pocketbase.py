"""
app/connectors/pocketbase.py

PocketBase REST client for the company catalog and coupon records.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

import requests

from app.config import PocketBaseSettings
from app.domain.coupon_catalog import CouponPage, CouponRecord
from app.domain.coupon_ingestion import BatchOutcome, CompanyRecord, StructuredError, ValidatedCoupon

logger = logging.getLogger(__name__)

BATCH_ABORTED_CODE = "batch_aborted"


class PocketBaseError(RuntimeError):
    """
    Raised when PocketBase rejects a request.

    Mirrors the backend error body: ``{"status", "message", "data"}``.
    """

    def __init__(self, message: str, *, status_code: int | None = None, data: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.data = data

    def to_structured(self) -> StructuredError:
        return StructuredError(message=self.message, data=self.data or None)


class PocketBaseUnavailableError(PocketBaseError):
    """
    Raised when PocketBase cannot be reached or answers with an unusable response.
    """


class PocketBaseClient:
    """
    Thin synchronous wrapper over the PocketBase records API.

    The client never retries; callers decide how failures are retried.
    """

    def __init__(
        self,
        *,
        settings: PocketBaseSettings,
        session: requests.Session | None = None,
    ) -> None:
        self._settings = settings
        self._base_url = settings.base_url.rstrip("/")
        self._session = session or requests.Session()
        self._timeout_seconds = settings.timeout_seconds
        self._token: str | None = settings.token

    # ------------------------------------------------------------------
    # Companies
    # ------------------------------------------------------------------

    def list_companies(self) -> list[CompanyRecord]:
        """
        Return the full company catalog, following pagination to the end.
        """

        companies: list[CompanyRecord] = []
        page = 1
        while True:
            payload = self._request_json(
                method="GET",
                path=f"/api/collections/{self._settings.companies_collection}/records",
                params={
                    "page": page,
                    "perPage": self._settings.companies_page_size,
                    "sort": "name",
                },
            )
            items = payload.get("items") or []
            companies.extend(self._to_company(item) for item in items)
            total_pages = int(payload.get("totalPages") or 0)
            if page >= total_pages or not items:
                break
            page += 1

        logger.info("Loaded company catalog companies=%d pages=%d", len(companies), page)
        return companies

    def upsert_company(
        self,
        *,
        company_id: str | None,
        name: str,
        conversion_factor: float,
    ) -> CompanyRecord:
        """
        Create a company, or update it when ``company_id`` is given.

        Names are stored trimmed and lowercased so catalog lookups stay
        case-insensitive.
        """

        body = {
            "name": name.strip().lower(),
            "conversion_factor": conversion_factor,
        }
        collection_path = f"/api/collections/{self._settings.companies_collection}/records"
        if company_id:
            payload = self._request_json(method="PATCH", path=f"{collection_path}/{company_id}", json=body)
        else:
            payload = self._request_json(method="POST", path=collection_path, json=body)
        return self._to_company(payload)

    def delete_company(self, company_id: str) -> None:
        """
        Delete one company record.

        Raises:
            PocketBaseError: The backend rejected the delete (unknown id, or
                coupons still reference the company).
        """

        self._request_json(
            method="DELETE",
            path=f"/api/collections/{self._settings.companies_collection}/records/{company_id}",
        )
        logger.info("Deleted company id=%s", company_id)

    # ------------------------------------------------------------------
    # Coupons
    # ------------------------------------------------------------------

    def create_coupon(self, coupon: ValidatedCoupon) -> dict[str, Any]:
        """
        Create one coupon record.

        Raises:
            PocketBaseError: The backend rejected the record.
            PocketBaseUnavailableError: The backend could not be reached.
        """

        return self._request_json(
            method="POST",
            path=f"/api/collections/{self._settings.coupons_collection}/records",
            json=coupon.to_payload(),
        )

    def create_coupons_batch(self, coupons: Sequence[ValidatedCoupon]) -> list[BatchOutcome]:
        """
        Create all coupons with one transactional batch request.

        Returns one outcome per input coupon, in input order.

        Raises:
            PocketBaseUnavailableError: The grouped call itself did not complete.
        """

        if not coupons:
            return []

        url = f"/api/collections/{self._settings.coupons_collection}/records"
        body = {
            "requests": [
                {"method": "POST", "url": url, "body": coupon.to_payload()}
                for coupon in coupons
            ]
        }

        try:
            payload = self._request_json(method="POST", path="/api/batch", json=body)
        except PocketBaseUnavailableError:
            raise
        except PocketBaseError as exc:
            outcomes = self._outcomes_from_batch_error(exc, total=len(coupons))
            if outcomes is None:
                raise PocketBaseUnavailableError(
                    f"Batch request failed: {exc.message}",
                    status_code=exc.status_code,
                    data=exc.data,
                ) from exc
            return outcomes

        if not isinstance(payload, list) or len(payload) != len(coupons):
            raise PocketBaseUnavailableError("Batch response did not contain one result per request.")

        return [self._outcome_from_batch_item(index, item) for index, item in enumerate(payload)]

    def list_coupons(self, *, page: int = 1, search: str | None = None) -> CouponPage:
        """
        Return one page of stored coupons, newest first, with company names expanded.

        ``search`` matches coupon codes by substring.
        """

        params: dict[str, Any] = {
            "page": max(1, page),
            "perPage": self._settings.coupons_page_size,
            "sort": "-created",
            "expand": "company",
        }
        if search and search.strip():
            params["filter"] = f"code ~ {_filter_literal(search.strip())}"

        payload = self._request_json(
            method="GET",
            path=f"/api/collections/{self._settings.coupons_collection}/records",
            params=params,
        )
        return CouponPage(
            page=int(payload.get("page") or params["page"]),
            per_page=int(payload.get("perPage") or params["perPage"]),
            total_pages=int(payload.get("totalPages") or 0),
            total_items=int(payload.get("totalItems") or 0),
            items=[self._to_coupon(item) for item in payload.get("items") or []],
        )

    def upsert_coupon(
        self,
        *,
        coupon_id: str | None,
        code: str,
        points: int | float,
        mrp: int | float,
        company_id: str,
    ) -> CouponRecord:
        """
        Create a coupon, or update it when ``coupon_id`` is given.
        """

        body = {"code": code.strip(), "points": points, "mrp": mrp, "company": company_id}
        collection_path = f"/api/collections/{self._settings.coupons_collection}/records"
        if coupon_id:
            payload = self._request_json(method="PATCH", path=f"{collection_path}/{coupon_id}", json=body)
        else:
            payload = self._request_json(method="POST", path=collection_path, json=body)
        return self._to_coupon(payload)

    def delete_coupon(self, coupon_id: str) -> None:
        self._request_json(
            method="DELETE",
            path=f"/api/collections/{self._settings.coupons_collection}/records/{coupon_id}",
        )
        logger.info("Deleted coupon id=%s", coupon_id)

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    def health(self) -> bool:
        """
        Return True when the PocketBase health endpoint answers successfully.
        """

        try:
            self._request_json(method="GET", path="/api/health", authenticated=False)
        except PocketBaseError as exc:
            logger.warning("PocketBase health check failed url=%s error=%s", self._base_url, exc)
            return False
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _outcomes_from_batch_error(self, exc: PocketBaseError, *, total: int) -> list[BatchOutcome] | None:
        # A rejected batch is rolled back as a whole; data.requests names the culprits.
        if exc.status_code != 400 or not isinstance(exc.data, dict):
            return None
        failed_requests = exc.data.get("requests")
        if not isinstance(failed_requests, dict) or not failed_requests:
            return None

        errors_by_index: dict[int, StructuredError] = {}
        for raw_index, detail in failed_requests.items():
            try:
                index = int(raw_index)
            except (TypeError, ValueError):
                continue
            errors_by_index[index] = self._structured_from_batch_detail(detail)

        aborted = StructuredError(
            message="Not created: the batch was rejected because other records failed.",
            code=BATCH_ABORTED_CODE,
        )
        return [
            BatchOutcome(index=index, success=False, error=errors_by_index.get(index, aborted))
            for index in range(total)
        ]

    @staticmethod
    def _structured_from_batch_detail(detail: Any) -> StructuredError:
        if not isinstance(detail, dict):
            return StructuredError(message=str(detail))
        response = detail.get("response")
        if isinstance(response, dict):
            return StructuredError(
                message=str(response.get("message") or detail.get("message") or "Request failed."),
                data=response.get("data") or None,
            )
        return StructuredError(
            message=str(detail.get("message") or "Request failed."),
            code=detail.get("code"),
        )

    @staticmethod
    def _outcome_from_batch_item(index: int, item: Any) -> BatchOutcome:
        if not isinstance(item, dict):
            return BatchOutcome(index=index, success=False, error=StructuredError(message=str(item)))
        status_code = int(item.get("status") or 0)
        if 200 <= status_code < 300:
            return BatchOutcome(index=index, success=True)
        body = item.get("body") if isinstance(item.get("body"), dict) else {}
        return BatchOutcome(
            index=index,
            success=False,
            error=StructuredError(
                message=str(body.get("message") or f"Request failed with status {status_code}."),
                data=body.get("data") or None,
            ),
        )

    @staticmethod
    def _to_company(item: dict[str, Any]) -> CompanyRecord:
        return CompanyRecord(
            id=str(item["id"]),
            name=str(item.get("name") or "").strip().lower(),
            conversion_factor=float(item.get("conversion_factor") or 0),
        )

    @staticmethod
    def _to_coupon(item: dict[str, Any]) -> CouponRecord:
        expand = item.get("expand") if isinstance(item.get("expand"), dict) else {}
        company = expand.get("company") if isinstance(expand.get("company"), dict) else {}
        return CouponRecord(
            id=str(item["id"]),
            code=str(item.get("code") or ""),
            points=item.get("points") or 0,
            mrp=item.get("mrp") or 0,
            company_id=str(item.get("company") or ""),
            company_name=company.get("name"),
            redeemed=bool(item.get("redeemed")),
            created=item.get("created"),
        )

    def _auth_headers(self) -> dict[str, str]:
        if self._token is None and self._settings.admin_email and self._settings.admin_password:
            self._token = self._authenticate()
        if self._token is None:
            return {}
        return {"Authorization": self._token}

    def _authenticate(self) -> str:
        payload = self._request_json(
            method="POST",
            path="/api/collections/_superusers/auth-with-password",
            json={
                "identity": self._settings.admin_email,
                "password": self._settings.admin_password,
            },
            authenticated=False,
        )
        token = payload.get("token") if isinstance(payload, dict) else None
        if not token:
            raise PocketBaseError("PocketBase authentication response did not include a token.")
        logger.info("Authenticated with PocketBase as superuser identity=%s", self._settings.admin_email)
        return str(token)

    def _request_json(
        self,
        *,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
        authenticated: bool = True,
    ) -> Any:
        """
        Execute one request and return parsed JSON, translating failures.
        """

        url = f"{self._base_url}{path}"
        headers = self._auth_headers() if authenticated else {}
        try:
            response = self._session.request(
                method=method,
                url=url,
                params=params,
                json=json,
                headers=headers,
                timeout=self._timeout_seconds,
            )
        except (requests.Timeout, requests.ConnectionError) as exc:
            logger.error("PocketBase request failed method=%s url=%s error=%s", method, url, exc)
            raise PocketBaseUnavailableError(f"PocketBase is unreachable: {exc}") from exc

        if response.status_code >= 500:
            logger.error(
                "PocketBase server error method=%s url=%s status=%s",
                method,
                url,
                response.status_code,
            )
            raise PocketBaseUnavailableError(
                f"PocketBase returned status {response.status_code}.",
                status_code=response.status_code,
            )

        try:
            payload = response.json() if response.content else {}
        except ValueError as exc:
            raise PocketBaseUnavailableError(
                "PocketBase response was not valid JSON.",
                status_code=response.status_code,
            ) from exc

        if response.status_code >= 400:
            body = payload if isinstance(payload, dict) else {}
            raise PocketBaseError(
                str(body.get("message") or f"PocketBase returned status {response.status_code}."),
                status_code=response.status_code,
                data=body.get("data") or None,
            )
        return payload


def _filter_literal(value: str) -> str:
    # Quoted string literal for the PocketBase filter syntax.
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"

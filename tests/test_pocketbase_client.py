"""
tests/test_pocketbase_client.py

PocketBaseClient request building and response translation, with a mocked
requests session.
"""

from __future__ import annotations

import unittest
from typing import Any
from unittest.mock import MagicMock

import requests

from app.config import PocketBaseSettings
from app.connectors.pocketbase import (
    BATCH_ABORTED_CODE,
    PocketBaseClient,
    PocketBaseError,
    PocketBaseUnavailableError,
)
from app.domain.coupon_ingestion import CompanyRecord, ValidatedCoupon


def _response(status_code: int, payload: Any = None) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.content = b"" if payload is None else b"{}"
    response.json.return_value = payload
    return response


def _coupons(*codes: str) -> list[ValidatedCoupon]:
    return [
        ValidatedCoupon(code=code, mrp=100, company_id="c1", points=10, row_number=index + 2)
        for index, code in enumerate(codes)
    ]


class TestPocketBaseClient(unittest.TestCase):
    def setUp(self) -> None:
        self.session = MagicMock(spec=requests.Session)
        self.settings = PocketBaseSettings(base_url="http://pb.test", token="tok", companies_page_size=2)
        self.client = PocketBaseClient(settings=self.settings, session=self.session)

    def test_list_companies_follows_pagination(self) -> None:
        self.session.request.side_effect = [
            _response(
                200,
                {
                    "page": 1,
                    "totalPages": 2,
                    "items": [
                        {"id": "c1", "name": "Acme", "conversion_factor": 10},
                        {"id": "c2", "name": "globex", "conversion_factor": 2.5},
                    ],
                },
            ),
            _response(
                200,
                {"page": 2, "totalPages": 2, "items": [{"id": "c3", "name": "initech", "conversion_factor": 0}]},
            ),
        ]

        companies = self.client.list_companies()

        self.assertEqual(
            companies,
            [
                CompanyRecord(id="c1", name="acme", conversion_factor=10.0),
                CompanyRecord(id="c2", name="globex", conversion_factor=2.5),
                CompanyRecord(id="c3", name="initech", conversion_factor=0.0),
            ],
        )
        pages = [call.kwargs["params"]["page"] for call in self.session.request.call_args_list]
        self.assertEqual(pages, [1, 2])
        first = self.session.request.call_args_list[0].kwargs
        self.assertEqual(first["url"], "http://pb.test/api/collections/companies/records")
        self.assertEqual(first["headers"], {"Authorization": "tok"})

    def test_create_coupon_posts_backend_fields(self) -> None:
        self.session.request.return_value = _response(200, {"id": "rec1"})

        self.client.create_coupon(_coupons("A1")[0])

        kwargs = self.session.request.call_args.kwargs
        self.assertEqual(kwargs["method"], "POST")
        self.assertEqual(kwargs["url"], "http://pb.test/api/collections/coupons/records")
        self.assertEqual(kwargs["json"], {"code": "A1", "mrp": 100, "company": "c1", "points": 10})

    def test_create_coupon_rejection_keeps_error_payload(self) -> None:
        self.session.request.return_value = _response(
            400,
            {
                "status": 400,
                "message": "Failed to create record.",
                "data": {"code": {"code": "validation_not_unique", "message": "Value must be unique."}},
            },
        )

        with self.assertRaises(PocketBaseError) as ctx:
            self.client.create_coupon(_coupons("A1")[0])

        self.assertNotIsInstance(ctx.exception, PocketBaseUnavailableError)
        self.assertEqual(ctx.exception.status_code, 400)
        self.assertEqual(ctx.exception.to_structured().describe(), "code: Value must be unique.")

    def test_connection_errors_are_unavailable(self) -> None:
        self.session.request.side_effect = requests.ConnectionError("refused")

        with self.assertRaises(PocketBaseUnavailableError):
            self.client.create_coupon(_coupons("A1")[0])

    def test_server_errors_are_unavailable(self) -> None:
        self.session.request.return_value = _response(503, {"message": "down"})

        with self.assertRaises(PocketBaseUnavailableError):
            self.client.list_companies()

    def test_batch_success_maps_each_response(self) -> None:
        self.session.request.return_value = _response(
            200,
            [{"status": 200, "body": {"id": "r1"}}, {"status": 200, "body": {"id": "r2"}}],
        )

        outcomes = self.client.create_coupons_batch(_coupons("A1", "A2"))

        self.assertEqual([outcome.success for outcome in outcomes], [True, True])
        body = self.session.request.call_args.kwargs["json"]
        self.assertEqual(self.session.request.call_args.kwargs["url"], "http://pb.test/api/batch")
        self.assertEqual(len(body["requests"]), 2)
        self.assertEqual(body["requests"][1]["url"], "/api/collections/coupons/records")
        self.assertEqual(body["requests"][1]["body"]["code"], "A2")

    def test_rejected_batch_reports_culprits_and_aborted_rest(self) -> None:
        self.session.request.return_value = _response(
            400,
            {
                "status": 400,
                "message": "Batch transaction failed.",
                "data": {
                    "requests": {
                        "1": {
                            "code": "batch_request_failed",
                            "message": "Batch request failed.",
                            "response": {
                                "status": 400,
                                "message": "Failed to create record.",
                                "data": {
                                    "code": {"code": "validation_not_unique", "message": "Value must be unique."}
                                },
                            },
                        }
                    }
                },
            },
        )

        outcomes = self.client.create_coupons_batch(_coupons("A1", "A2", "A3"))

        self.assertEqual([outcome.success for outcome in outcomes], [False, False, False])
        self.assertEqual(outcomes[1].error.reason_code(), "validation_not_unique")
        self.assertEqual(outcomes[0].error.reason_code(), BATCH_ABORTED_CODE)
        self.assertEqual(outcomes[2].error.reason_code(), BATCH_ABORTED_CODE)

    def test_batch_error_without_details_is_unavailable(self) -> None:
        self.session.request.return_value = _response(403, {"status": 403, "message": "Forbidden."})

        with self.assertRaises(PocketBaseUnavailableError):
            self.client.create_coupons_batch(_coupons("A1"))

    def test_batch_with_wrong_result_count_is_unavailable(self) -> None:
        self.session.request.return_value = _response(200, [{"status": 200, "body": {}}])

        with self.assertRaises(PocketBaseUnavailableError):
            self.client.create_coupons_batch(_coupons("A1", "A2"))

    def test_upsert_company_lowercases_and_patches_existing(self) -> None:
        self.session.request.return_value = _response(200, {"id": "c1", "name": "acme", "conversion_factor": 12})

        company = self.client.upsert_company(company_id="c1", name="  ACME ", conversion_factor=12)

        kwargs = self.session.request.call_args.kwargs
        self.assertEqual(kwargs["method"], "PATCH")
        self.assertEqual(kwargs["url"], "http://pb.test/api/collections/companies/records/c1")
        self.assertEqual(kwargs["json"], {"name": "acme", "conversion_factor": 12})
        self.assertEqual(company, CompanyRecord(id="c1", name="acme", conversion_factor=12.0))

    def test_upsert_company_creates_when_no_id(self) -> None:
        self.session.request.return_value = _response(200, {"id": "c9", "name": "hooli", "conversion_factor": 5})

        self.client.upsert_company(company_id=None, name="Hooli", conversion_factor=5)

        self.assertEqual(self.session.request.call_args.kwargs["method"], "POST")

    def test_delete_company(self) -> None:
        self.session.request.return_value = _response(204)

        self.client.delete_company("c1")

        kwargs = self.session.request.call_args.kwargs
        self.assertEqual(kwargs["method"], "DELETE")
        self.assertEqual(kwargs["url"], "http://pb.test/api/collections/companies/records/c1")

    def test_list_coupons_searches_and_expands_company(self) -> None:
        self.session.request.return_value = _response(
            200,
            {
                "page": 2,
                "perPage": 10,
                "totalPages": 3,
                "totalItems": 25,
                "items": [
                    {
                        "id": "r1",
                        "code": "SUMMER-1",
                        "points": 10,
                        "mrp": 100,
                        "company": "c1",
                        "redeemed": True,
                        "created": "2024-05-01 10:00:00.000Z",
                        "expand": {"company": {"id": "c1", "name": "acme"}},
                    },
                    {"id": "r2", "code": "SUMMER-2", "points": 5, "mrp": 50, "company": "c9"},
                ],
            },
        )

        page = self.client.list_coupons(page=2, search=" sum'mer ")

        params = self.session.request.call_args.kwargs["params"]
        self.assertEqual(params["page"], 2)
        self.assertEqual(params["perPage"], 10)
        self.assertEqual(params["sort"], "-created")
        self.assertEqual(params["expand"], "company")
        self.assertEqual(params["filter"], "code ~ 'sum\\'mer'")
        self.assertEqual((page.page, page.total_pages, page.total_items), (2, 3, 25))
        self.assertEqual(page.items[0].company_name, "acme")
        self.assertTrue(page.items[0].redeemed)
        self.assertIsNone(page.items[1].company_name)
        self.assertFalse(page.items[1].redeemed)

    def test_list_coupons_without_search_has_no_filter(self) -> None:
        self.session.request.return_value = _response(200, {"items": [], "totalPages": 0, "totalItems": 0})

        page = self.client.list_coupons()

        self.assertNotIn("filter", self.session.request.call_args.kwargs["params"])
        self.assertEqual(page.items, [])
        self.assertEqual(page.page, 1)

    def test_upsert_coupon_patches_existing(self) -> None:
        self.session.request.return_value = _response(
            200,
            {"id": "r1", "code": "A1", "points": 12, "mrp": 120, "company": "c2"},
        )

        coupon = self.client.upsert_coupon(coupon_id="r1", code=" A1 ", points=12, mrp=120, company_id="c2")

        kwargs = self.session.request.call_args.kwargs
        self.assertEqual(kwargs["method"], "PATCH")
        self.assertEqual(kwargs["url"], "http://pb.test/api/collections/coupons/records/r1")
        self.assertEqual(kwargs["json"], {"code": "A1", "points": 12, "mrp": 120, "company": "c2"})
        self.assertEqual((coupon.id, coupon.company_id, coupon.points), ("r1", "c2", 12))

    def test_upsert_coupon_creates_when_no_id(self) -> None:
        self.session.request.return_value = _response(200, {"id": "r5", "code": "A5", "company": "c1"})

        self.client.upsert_coupon(coupon_id=None, code="A5", points=3, mrp=30, company_id="c1")

        kwargs = self.session.request.call_args.kwargs
        self.assertEqual(kwargs["method"], "POST")
        self.assertEqual(kwargs["url"], "http://pb.test/api/collections/coupons/records")

    def test_delete_missing_coupon_keeps_status(self) -> None:
        self.session.request.return_value = _response(404, {"status": 404, "message": "Not found."})

        with self.assertRaises(PocketBaseError) as ctx:
            self.client.delete_coupon("nope")

        self.assertNotIsInstance(ctx.exception, PocketBaseUnavailableError)
        self.assertEqual(ctx.exception.status_code, 404)
        self.assertEqual(self.session.request.call_args.kwargs["method"], "DELETE")

    def test_superuser_login_happens_once(self) -> None:
        settings = PocketBaseSettings(
            base_url="http://pb.test",
            admin_email="admin@example.com",
            admin_password="secret",
        )
        client = PocketBaseClient(settings=settings, session=self.session)
        self.session.request.side_effect = [
            _response(200, {"token": "jwt"}),
            _response(200, {"id": "rec1"}),
            _response(200, {"id": "rec2"}),
        ]

        client.create_coupon(_coupons("A1")[0])
        client.create_coupon(_coupons("A2")[0])

        calls = self.session.request.call_args_list
        self.assertEqual(calls[0].kwargs["url"], "http://pb.test/api/collections/_superusers/auth-with-password")
        self.assertEqual(calls[0].kwargs["headers"], {})
        self.assertEqual(calls[1].kwargs["headers"], {"Authorization": "jwt"})
        self.assertEqual(calls[2].kwargs["headers"], {"Authorization": "jwt"})
        self.assertEqual(len(calls), 3)

    def test_health(self) -> None:
        self.session.request.return_value = _response(200, {"code": 200, "message": "API is healthy."})
        self.assertTrue(self.client.health())

        self.session.request.side_effect = requests.Timeout("slow")
        self.assertFalse(self.client.health())


if __name__ == "__main__":
    unittest.main()

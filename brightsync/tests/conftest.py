# brightsync/tests/conftest.py
"""
Pytest configuration and shared fixtures for Brightsync tests
"""
import itertools
import re
from typing import Any, Dict, List
from urllib.parse import parse_qs, urlparse

import pytest

import brightsync.orgstructure as orgstructure
from brightsync.config_utils import BrightsyncConfig
from brightsync.lms_client import LmsClient
from brightsync.models import SisCourseOffering


HOST_URL = "https://lms.example.edu"
LP_URL = HOST_URL + "/d2l/api/lp/1.10/"
ORGANIZATION_NAME = "Erasmus University Rotterdam"


@pytest.fixture(autouse=True)
def fresh_org_unit_type_cache(monkeypatch) -> orgstructure.OrgUnitTypeCache:
    """Give every test its own process-wide org unit type cache"""
    cache = orgstructure.OrgUnitTypeCache()
    monkeypatch.setattr(orgstructure, "_org_unit_type_cache", cache)
    return cache


@pytest.fixture
def config() -> BrightsyncConfig:
    return BrightsyncConfig(
        host_url=HOST_URL,
        client_id="test-client",
        client_secret="test-secret",
        course_offering_type_code="Course Offering",
        course_template_type_code="Course Template",
        semester_type_code="Semester",
        organization_name=ORGANIZATION_NAME,
        organization_type_id=1,
        template_parent_org_unit_id=6619,
    )


@pytest.fixture
def client(config) -> LmsClient:
    return LmsClient("test-token-0123456789", config)


@pytest.fixture
def sis() -> SisCourseOffering:
    return SisCourseOffering(code="sef7", name="Sefanja's Course 7", academic_year=2016)


class FakeLms:
    """
    In-memory org structure served through requests_mock.

    Listings match codes and names as case-insensitive substrings, answer
    404 when nothing matches, and page `page_size` items at a time.
    """

    ORG_UNIT_TYPES = [
        {"Id": 1, "Code": "Organization", "Name": "Organization"},
        {"Id": 2, "Code": "Course Template", "Name": "Course Template"},
        {"Id": 3, "Code": "Course Offering", "Name": "Course Offering"},
        {"Id": 5, "Code": "Semester", "Name": "Semester"},
    ]

    def __init__(self, requests_mock, page_size: int = 2):
        self.page_size = page_size
        self.org_units: List[Dict[str, Any]] = []
        self._ids = itertools.count(7001)

        orgstructure_url = LP_URL + "orgstructure/"
        requests_mock.get(LP_URL + "outypes/", json=self.ORG_UNIT_TYPES)
        requests_mock.get(re.compile(re.escape(orgstructure_url) + r"\?"), json=self._list)
        requests_mock.post(orgstructure_url, json=self._create_semester)
        requests_mock.post(LP_URL + "coursetemplates/", json=self._create_course_template)
        requests_mock.post(LP_URL + "courses/", json=self._create_course_offering)
        requests_mock.put(re.compile(re.escape(orgstructure_url) + r"\d+$"), json=self._update)
        self.requests_mock = requests_mock

    # -- seeding ------------------------------------------------------------

    def add(self, type_code: str, code: str, name: str, **fields) -> Dict[str, Any]:
        org_unit_type = self._type(type_code)
        org_unit = {
            "Identifier": str(next(self._ids)),
            "Name": name,
            "Code": code,
            "Type": dict(org_unit_type),
            **fields,
        }
        self.org_units.append(org_unit)
        return org_unit

    def add_organization(self, name: str = ORGANIZATION_NAME) -> Dict[str, Any]:
        return self.add("Organization", "EUR", name)

    # -- inspection ---------------------------------------------------------

    def requests_to(self, method: str, path: str) -> list:
        url = LP_URL + path
        return [
            r for r in self.requests_mock.request_history
            if r.method == method and r.url.split("?")[0] == url
        ]

    def of_type(self, type_code: str) -> List[Dict[str, Any]]:
        type_id = self._type(type_code)["Id"]
        return [u for u in self.org_units if u["Type"]["Id"] == type_id]

    # -- handlers -----------------------------------------------------------

    def _type(self, code: str) -> Dict[str, Any]:
        return next(t for t in self.ORG_UNIT_TYPES if t["Code"] == code)

    def _list(self, request, context):
        query = parse_qs(urlparse(request.url).query)
        type_id = int(query["orgUnitType"][0])
        matches = [u for u in self.org_units if u["Type"]["Id"] == type_id]
        for param, field in (("orgUnitCode", "Code"), ("orgUnitName", "Name")):
            if param in query:
                needle = query[param][0].lower()
                matches = [u for u in matches if needle in str(u[field]).lower()]

        if not matches:
            context.status_code = 404
            return {}

        start = int(query.get("bookmark", ["0"])[0])
        end = start + self.page_size
        return {
            "Items": [dict(u) for u in matches[start:end]],
            "PagingInfo": {"HasMoreItems": end < len(matches), "Bookmark": str(end)},
        }

    def _create_semester(self, request, context):
        body = request.json()
        semester_type = next(t for t in self.ORG_UNIT_TYPES if t["Id"] == body["Type"])
        return self.add(semester_type["Code"], body["Code"], body["Name"], Parents=body["Parents"])

    def _create_course_template(self, request, context):
        body = request.json()
        return self.add("Course Template", body["Code"], body["Name"], Path=body["Path"])

    def _create_course_offering(self, request, context):
        body = request.json()
        return self.add("Course Offering", body["Code"], body["Name"], Path=body["Path"])

    def _update(self, request, context):
        identifier = request.url.rsplit("/", 1)[-1]
        org_unit = next(u for u in self.org_units if u["Identifier"] == identifier)
        org_unit.update(request.json())
        return dict(org_unit)


@pytest.fixture
def fake_lms(requests_mock) -> FakeLms:
    return FakeLms(requests_mock)

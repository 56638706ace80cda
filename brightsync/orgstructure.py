#!/usr/bin/env python3
"""
# Brightsync
# Copyright (c) 2026 Dale Chapman
# Licensed under the MIT License. See LICENSE in the project root.

orgstructure.py

Upsert a SIS course offering into the LMS org structure.

The org structure is a loosely keyed hierarchy:

    Organization -> Semester -> Course Template -> Course Offering

Entities are looked up by business code through orgstructure/ listings,
which page with bookmarks and match codes and names as substrings. Each
lookup therefore walks every page and then narrows the result to exactly
one item client-side.

Missing semesters, course templates and course offerings are created on
demand. The organization is only ever looked up.
"""

from __future__ import annotations

import copy
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import quote, urlencode

from brightsync.errors import (
    LmsTransportError,
    ambiguous_match_error,
    org_unit_type_not_found_error,
    organization_not_found_error,
)
from brightsync.lms_client import LmsClient
from brightsync.models import OrgUnit, SisCourseOffering, get_id

logger = logging.getLogger(__name__)


# ============================================================================
# Parallel join
# ============================================================================

def run_parallel(tasks: Dict[str, Callable[[], Any]]) -> Dict[str, Any]:
    """
    Run independent tasks concurrently and wait for all of them.

    Returns a dict of results keyed like ``tasks``. The first task to raise
    wins: its exception is re-raised unchanged as soon as it happens and the
    other results are discarded. Tasks already in flight are not interrupted;
    they finish in the background.
    """
    results: Dict[str, Any] = {}
    executor = ThreadPoolExecutor(max_workers=max(len(tasks), 1))
    future_to_name = {executor.submit(fn): name for name, fn in tasks.items()}
    for future in as_completed(future_to_name):
        error = future.exception()
        if error is not None:
            executor.shutdown(wait=False, cancel_futures=True)
            raise error
        results[future_to_name[future]] = future.result()
    executor.shutdown()
    return results


# ============================================================================
# Pagination and exact matching
# ============================================================================

def paginate(url: str, client: LmsClient) -> List[OrgUnit]:
    """
    Walk through all the pages of a listing and return every item.

    A 404 ends the walk and is not an error (the LMS answers 404 for an
    empty listing). Any other failure raises and drops the pages read so far.
    """
    items: List[OrgUnit] = []
    page_url = url

    while True:
        try:
            page = client.get(page_url) or {}
        except LmsTransportError as e:
            if e.status_code == 404:
                logger.debug("404 on %s, treating as end of listing", page_url)
                return items
            raise

        items.extend(page.get("Items") or [])

        paging = page.get("PagingInfo") or {}
        if not paging.get("HasMoreItems"):
            return items

        bookmark = paging.get("Bookmark")
        logger.debug("More items after bookmark %s (%d so far)", bookmark, len(items))
        separator = "&" if "?" in url else "?"
        page_url = f"{url}{separator}bookmark={quote(str(bookmark), safe='')}"


def resolve_exact(items: List[OrgUnit], match_filter: Dict[str, Any]) -> Optional[OrgUnit]:
    """
    Narrow substring search results down to the one exact match.

    Returns None when nothing matches. Raises AmbiguousMatchError when more
    than one item matches, which means the data in the LMS is inconsistent.
    """
    matches = [
        item for item in items
        if all(key in item and item[key] == value for key, value in match_filter.items())
    ]
    if len(matches) > 1:
        raise ambiguous_match_error(match_filter, len(matches))
    if not matches:
        return None
    return matches[0]


# ============================================================================
# Org unit types
# ============================================================================

class OrgUnitTypeCache:
    """
    Raw outypes/ listings keyed by request URL.

    Entries are filled lazily on the first successful fetch and kept for
    the life of the process. Nothing is ever expired or invalidated, so
    type changes in the LMS are only picked up after a restart. There is
    no lock: concurrent misses may both fetch, which only costs a request.
    """

    def __init__(self):
        self._entries: Dict[str, List[Dict[str, Any]]] = {}

    def get(self, url: str) -> Optional[List[Dict[str, Any]]]:
        return self._entries.get(url)

    def put(self, url: str, org_unit_types: List[Dict[str, Any]]) -> None:
        self._entries[url] = org_unit_types

    def __contains__(self, url: str) -> bool:
        return url in self._entries

    def __len__(self) -> int:
        return len(self._entries)


# Process-wide cache instance
_org_unit_type_cache = OrgUnitTypeCache()


def get_org_unit_type_cache() -> OrgUnitTypeCache:
    """Get the process-wide org unit type cache."""
    return _org_unit_type_cache


def get_org_unit_type(code: str, client: LmsClient, cache: Optional[OrgUnitTypeCache] = None) -> Dict[str, Any]:
    """
    Get an org unit type by its code.

    Raises OrgUnitTypeNotFoundError if the LMS has no type with that code.
    """
    if cache is None:
        cache = get_org_unit_type_cache()

    url = client.url("outypes/")
    org_unit_types = cache.get(url)
    if org_unit_types is not None:
        logger.info("[FROM CACHE] GET %s", url)
    else:
        org_unit_types = client.get(url) or []
        cache.put(url, org_unit_types)

    for org_unit_type in org_unit_types:
        if org_unit_type.get("Code") == code:
            return org_unit_type
    raise org_unit_type_not_found_error(code)


# ============================================================================
# Lookups
# ============================================================================

def _quote_component(value: str, *_) -> str:
    # Codes and names may contain '/', which must not reach the LMS unescaped.
    return quote(value, safe="")


def _listing_url(client: LmsClient, org_unit_type_id: Any, **filters: Any) -> str:
    query = urlencode({"orgUnitType": org_unit_type_id, **filters}, quote_via=_quote_component)
    return client.url("orgstructure/") + "?" + query


def _find_by_code(type_code_setting: str, code: str, client: LmsClient) -> Optional[OrgUnit]:
    org_unit_type = get_org_unit_type(client.config.require(type_code_setting), client)
    url = _listing_url(client, get_id(org_unit_type), orgUnitCode=code)
    # Codes are not unique and are matched as a substring.
    return resolve_exact(paginate(url, client), {"Code": code})


def get_course_offering(sis: SisCourseOffering, client: LmsClient) -> Optional[OrgUnit]:
    """The course offering for a SIS record, or None if there is none."""
    return _find_by_code("course_offering_type_code", sis.course_offering_code, client)


def get_course_template(sis: SisCourseOffering, client: LmsClient) -> Optional[OrgUnit]:
    """The course template for a SIS record, or None if there is none."""
    return _find_by_code("course_template_type_code", sis.course_template_code, client)


def get_semester(sis: SisCourseOffering, client: LmsClient) -> Optional[OrgUnit]:
    """The semester for a SIS record's academic year, or None if there is none."""
    return _find_by_code("semester_type_code", sis.semester_code, client)


def get_organization(name: str, client: LmsClient) -> Optional[OrgUnit]:
    """An organization by its exact name, or None if there is none."""
    url = _listing_url(client, client.config.require("organization_type_id"), orgUnitName=name)
    return resolve_exact(paginate(url, client), {"Name": name})


# ============================================================================
# Creation
# ============================================================================

def insert_semester(sis: SisCourseOffering, client: LmsClient) -> OrgUnit:
    """Create the semester for a SIS record's academic year under the organization."""
    config = client.config
    organization_name = config.require("organization_name")

    prerequisites = run_parallel({
        "semester_type": lambda: get_org_unit_type(config.require("semester_type_code"), client),
        "organization": lambda: get_organization(organization_name, client),
    })
    if prerequisites["organization"] is None:
        raise organization_not_found_error(organization_name)

    new_semester = {
        "Type": get_id(prerequisites["semester_type"]),
        "Name": sis.semester_name,
        "Code": sis.semester_code,
        "Parents": [get_id(prerequisites["organization"])],
    }
    return client.post(client.url("orgstructure/"), new_semester)


def insert_course_template(sis: SisCourseOffering, client: LmsClient) -> OrgUnit:
    """Create the course template for a SIS record."""
    config = client.config
    new_course_template = {
        "Name": sis.course_template_name,
        "Code": sis.course_template_code,
        "Path": config.template_path,
        # TODO: derive the parent (e.g. the course's faculty) instead of one configured org unit
        "ParentOrgUnitIds": [config.require("template_parent_org_unit_id")],
    }
    return client.post(client.url("coursetemplates/"), new_course_template)


def get_or_create_course_template(sis: SisCourseOffering, client: LmsClient) -> OrgUnit:
    course_template = get_course_template(sis, client)
    if course_template is None:
        course_template = insert_course_template(sis, client)
    return course_template


def get_or_create_semester(sis: SisCourseOffering, client: LmsClient) -> OrgUnit:
    semester = get_semester(sis, client)
    if semester is None:
        semester = insert_semester(sis, client)
    return semester


def insert_course_offering(sis: SisCourseOffering, client: LmsClient) -> OrgUnit:
    """
    Create the course offering for a SIS record.

    The course template and the semester are resolved (and created when
    missing) concurrently; if either fails the offering is not created.
    """
    parents = run_parallel({
        "course_template": lambda: get_or_create_course_template(sis, client),
        "semester": lambda: get_or_create_semester(sis, client),
    })

    new_course_offering = {
        "Name": sis.name,
        "Code": sis.course_offering_code,
        "Path": client.config.offering_path,
        "CourseTemplateId": get_id(parents["course_template"]),
        "SemesterId": get_id(parents["semester"]),
        "StartDate": None,
        "EndDate": None,
        "LocaleId": None,
        "ForceLocale": None,
        "ShowAddressBook": 0,
    }
    return client.post(client.url("courses/"), new_course_offering)


# ============================================================================
# Upsert
# ============================================================================

def update_course_offering(course_offering: OrgUnit, sis: SisCourseOffering, client: LmsClient) -> OrgUnit:
    """
    Update a course offering from the SIS, if changed.

    Only Name is taken from the SIS; every other field is sent back as the
    LMS returned it. Any difference at all, including server-maintained
    fields, counts as a change.
    """
    updated = copy.deepcopy(course_offering)
    updated["Name"] = sis.name

    if updated == course_offering:
        logger.info("[upsert] %s unchanged, skipping update", sis.course_offering_code)
        return course_offering

    url = client.url(f"orgstructure/{quote(str(get_id(course_offering)), safe='')}")
    result = client.put(url, updated)
    return result if result is not None else updated


def upsert_course_offering(sis: SisCourseOffering, client: LmsClient) -> OrgUnit:
    """
    Insert or update a course offering from the SIS.

    Returns the course offering, whether untouched, updated or inserted.
    """
    logger.info("[upsert] resolving course offering %s", sis.course_offering_code)
    course_offering = get_course_offering(sis, client)

    if course_offering is None:
        logger.info("[upsert] %s not found, creating", sis.course_offering_code)
        return insert_course_offering(sis, client)

    logger.info("[upsert] %s found (id=%s), comparing", sis.course_offering_code, get_id(course_offering))
    return update_course_offering(course_offering, sis, client)

"""
# Brightsync
# Copyright (c) 2026 Dale Chapman
# Licensed under the MIT License. See LICENSE in the project root.

models.py

SIS input record and helpers for the LMS org unit JSON objects.

Org units are kept as the plain dicts the LMS returns so that an update
can send back every field it received untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping

from brightsync.errors import ConfigurationError, missing_identifier_error


# CourseOffering, CourseTemplate, Semester, Organization and OrgUnitType
# records are all passed around as raw JSON objects.
OrgUnit = Dict[str, Any]


def get_id(org_unit: Mapping[str, Any]) -> Any:
    """
    Return the identifier of an org unit or org unit type.

    outypes/ returns types keyed by ``Id``; orgstructure/, courses/ and
    coursetemplates/ return entities keyed by ``Identifier``.

    Raises:
        MalformedOrgUnitError: neither key is present, or there is no org
            unit at all (an empty response body)
    """
    if not isinstance(org_unit, Mapping):
        raise missing_identifier_error(org_unit)
    if org_unit.get("Id"):
        return org_unit["Id"]
    if "Identifier" in org_unit:
        return org_unit["Identifier"]
    if "Id" in org_unit:
        return org_unit["Id"]
    raise missing_identifier_error(dict(org_unit))


@dataclass(frozen=True)
class SisCourseOffering:
    """A course offering as delivered by the SIS"""
    code: str
    name: str
    academic_year: int

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SisCourseOffering":
        """Build from SIS field names (Code, Name, AcademicYear) or snake_case."""
        def pick(*keys):
            for key in keys:
                if data.get(key) not in (None, ""):
                    return data[key]
            raise ConfigurationError(
                message=f"SIS course offering is missing '{keys[0]}'",
                suggestion="Provide Code, Name and AcademicYear",
                context={"record": dict(data)},
            )

        year = pick("AcademicYear", "academic_year")
        try:
            year = int(year)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                message=f"AcademicYear must be a whole number, got {year!r}",
                context={"record": dict(data)},
                cause=e,
            )

        return cls(
            code=str(pick("Code", "code")),
            name=str(pick("Name", "name")),
            academic_year=year,
        )

    @property
    def course_offering_code(self) -> str:
        return f"{self.code}-{self.academic_year % 1000}"

    @property
    def course_template_code(self) -> str:
        return self.code

    @property
    def course_template_name(self) -> str:
        return f"{self.code} - Template"

    @property
    def semester_code(self) -> str:
        # The LMS stores codes as strings; 2016 -> "16", 2005 -> "5"
        return str(self.academic_year % 1000)

    @property
    def semester_name(self) -> str:
        return f"{self.academic_year}-{self.academic_year + 1}"

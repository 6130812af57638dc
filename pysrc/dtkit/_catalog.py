"""The named input formats and the output format specifiers."""

from __future__ import annotations

from typing import NamedTuple


class CatalogFormat(NamedTuple):
    """A named strptime-style template for recognizing input"""

    name: str
    template: str
    example: str
    description: str


# Tried in this order when resolving a string
FORMAT_CATALOG: tuple[CatalogFormat, ...] = (
    CatalogFormat(
        "iso8601_strict",
        "%Y-%m-%dT%H:%M:%S%:z",
        "2022-08-17T21:43:13+08:00",
        "ISO 8601 with a numeric offset",
    ),
    CatalogFormat(
        "iso8601_strict_fractional",
        "%Y-%m-%dT%H:%M:%S%.f%:z",
        "2022-08-17T21:43:13.123456789+08:00",
        "ISO 8601 with fractional seconds and a numeric offset",
    ),
    CatalogFormat(
        "rfc2822",
        "%a, %d %b %Y %H:%M:%S %z",
        "Thu, 18 Aug 2022 12:45:06 +0800",
        "RFC 2822, as used in email headers",
    ),
    CatalogFormat(
        "git_rfc2822",
        "%a, %-d %b %Y %H:%M:%S %z",
        "Thu, 8 Aug 2022 12:45:06 +0800",
        "RFC 2822 with an unpadded day, as written by git",
    ),
    CatalogFormat(
        "gitoxide",
        "%a %b %d %Y %H:%M:%S %z",
        "Thu Sep 04 2022 10:45:06 -0400",
        "The default date format of gitoxide",
    ),
    CatalogFormat(
        "gitlog_default",
        "%a %b %-d %H:%M:%S %Y %z",
        "Thu Sep 4 10:45:06 2022 -0400",
        "The default date format of git log",
    ),
    CatalogFormat(
        "short_date",
        "%Y-%m-%d",
        "2018-7-9",
        "Year, month and day",
    ),
    CatalogFormat(
        "short_date_usa_2year",
        "%m/%d/%y",
        "7/9/24",
        "US month/day/year with a two digit year (69-99 are 19xx)",
    ),
    CatalogFormat(
        "short_date_usa_4year",
        "%m/%d/%Y",
        "7/9/2024",
        "US month/day/year",
    ),
)

SHORT_DATE_FORMATS: tuple[CatalogFormat, ...] = FORMAT_CATALOG[-3:]


def list_formats() -> list[tuple[str, str, str]]:
    """The recognized input formats as ``(name, example, description)``"""
    return [(f.name, f.example, f.description) for f in FORMAT_CATALOG]


class FormatSpecifier(NamedTuple):
    specifier: str
    example: str
    description: str


FORMAT_SPECIFIERS: tuple[FormatSpecifier, ...] = (
    FormatSpecifier("%%", "%%", "A literal %."),
    FormatSpecifier(
        "%A, %a",
        "Sunday, Sun",
        "The full and abbreviated weekday, respectively.",
    ),
    FormatSpecifier(
        "%B, %b, %h",
        "June, Jun, Jun",
        "The full and abbreviated month name, respectively.",
    ),
    FormatSpecifier("%D", "07/14/24", "Equivalent to %m/%d/%y."),
    FormatSpecifier(
        "%d, %e",
        "25,  5",
        "The day of the month. %d is zero-padded, %e is space padded.",
    ),
    FormatSpecifier("%F", "2024-07-14", "Equivalent to %Y-%m-%d."),
    FormatSpecifier(
        "%f", "000456", "Fractional seconds, up to nanosecond precision."
    ),
    FormatSpecifier(
        "%.f",
        ".000456",
        "Optional fractional seconds, with dot, up to nanosecond precision.",
    ),
    FormatSpecifier("%H", "23", "The hour in a 24 hour clock. Zero padded."),
    FormatSpecifier("%I", "11", "The hour in a 12 hour clock. Zero padded."),
    FormatSpecifier("%M", "04", "The minute. Zero padded."),
    FormatSpecifier("%m", "01", "The month. Zero padded."),
    FormatSpecifier(
        "%P", "am", "Whether the time is in the AM or PM, lowercase."
    ),
    FormatSpecifier(
        "%p", "PM", "Whether the time is in the AM or PM, uppercase."
    ),
    FormatSpecifier("%S", "59", "The second. Zero padded."),
    FormatSpecifier("%T", "23:30:59", "Equivalent to %H:%M:%S."),
    FormatSpecifier(
        "%V",
        "America/New_York, +0530",
        "An IANA time zone identifier, or %z if one doesn't exist.",
    ),
    FormatSpecifier(
        "%:V",
        "America/New_York, +05:30",
        "An IANA time zone identifier, or %:z if one doesn't exist.",
    ),
    FormatSpecifier(
        "%Y",
        "2024",
        "A full year, including century. Zero padded to 4 digits.",
    ),
    FormatSpecifier(
        "%y",
        "24",
        "A two-digit year. Represents only 1969-2068. Zero padded.",
    ),
    FormatSpecifier(
        "%Z",
        "EDT",
        "A time zone abbreviation. Supported when formatting only.",
    ),
    FormatSpecifier(
        "%z", "+0530", "A time zone offset in the format [+-]HHMM[SS]."
    ),
    FormatSpecifier(
        "%:z",
        "+05:30",
        "A time zone offset in the format [+-]HH:MM[:SS].",
    ),
)


def list_format_specifiers() -> list[tuple[str, str, str]]:
    """The directives accepted by ``ZonedValue.format()``"""
    return [tuple(s) for s in FORMAT_SPECIFIERS]  # type: ignore[misc]

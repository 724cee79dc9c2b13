"""Catalog models: journals, issues, volumes and their articles.

Journal and volume metadata is produced by the scraper and consumed by the
downloader. The JSON layout is the one written by `naturedl scrape`.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from naturedl.utils.exceptions import InvalidIdError

BASE_URL = "https://www.nature.com"
SUPPORTED_NAMES = ("nature",)

# Issues of volumes before this one use the legacy page layout
LEGACY_LAYOUT_BEFORE_VOLUME = 553

DATE_INPUT_FORMAT = "%d %B %Y"

# Date part of the folder name of an issue without a known date
UNDATED = "undated"


def convert_date(value: str) -> Optional[str]:
    """Convert a "D MMMM YYYY" date into "YYYY-MM-DD"

    Returns None when the value cannot be parsed.
    """
    try:
        return datetime.strptime(value.strip(), DATE_INPUT_FORMAT).strftime(
            "%Y-%m-%d"
        )
    except ValueError:
        return None


def _check_name(name: str) -> None:
    if name not in SUPPORTED_NAMES:
        raise InvalidIdError(f"Not supported at this moment: {name}")


class JournalId(BaseModel):
    """Identifier of a single journal issue ("nature:555:7698")"""

    name: str
    volume: int
    issue: int

    @classmethod
    def parse(cls, value: str) -> "JournalId":
        parts = value.split(":")
        if len(parts) != 3:
            raise InvalidIdError(f"Invalid journal ID: {value}")
        name, volume, issue = parts
        _check_name(name)
        try:
            return cls(name=name, volume=int(volume), issue=int(issue))
        except ValueError:
            raise InvalidIdError(f"Invalid journal ID: {value}")

    def __str__(self) -> str:
        return f"{self.name}:{self.volume}:{self.issue}"

    @property
    def url(self) -> str:
        if self.volume < LEGACY_LAYOUT_BEFORE_VOLUME:
            return (
                f"{BASE_URL}/{self.name}/journal/"
                f"v{self.volume}/n{self.issue}/index.html"
            )
        return f"{BASE_URL}/{self.name}/volumes/{self.volume}/issues/{self.issue}"

    @property
    def legacy_layout(self) -> bool:
        return self.volume < LEGACY_LAYOUT_BEFORE_VOLUME


class VolumeId(BaseModel):
    """Identifier of a volume ("nature:555")"""

    name: str
    volume: int

    @classmethod
    def parse(cls, value: str) -> "VolumeId":
        parts = value.split(":")
        if len(parts) != 2:
            raise InvalidIdError(f"Invalid volume ID: {value}")
        name, volume = parts
        _check_name(name)
        try:
            return cls(name=name, volume=int(volume))
        except ValueError:
            raise InvalidIdError(f"Invalid volume ID: {value}")

    def __str__(self) -> str:
        return f"{self.name}:{self.volume}"

    @property
    def url(self) -> str:
        return f"{BASE_URL}/{self.name}/volumes/{self.volume}"


class Article(BaseModel):
    """A single downloadable article of a journal issue"""

    model_config = ConfigDict(extra="ignore")

    title: str
    url: str
    type: Optional[str] = None
    date: Optional[str] = None
    description: Optional[str] = None
    authors: List[str] = Field(default_factory=list)


class Journal(BaseModel):
    """A journal issue with its ordered list of articles"""

    model_config = ConfigDict(extra="ignore")

    name: str
    volume: int
    issue: int
    url: Optional[str] = None
    date: Optional[str] = None
    articles: List[Article] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def id(self) -> str:
        return f"{self.name}:{self.volume}:{self.issue}"

    @property
    def folder(self) -> str:
        """Folder name of the issue inside <outdir>/<name>/

        Issues whose date could not be scraped are filed under "undated".
        """
        return f"{self.date or UNDATED}_{self.volume}_{self.issue}"


class Issue(BaseModel):
    """An issue listed on a volume page"""

    id: int
    url: str
    img: Optional[str] = None
    date: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None


class Volume(BaseModel):
    """A volume with the issues it contains"""

    name: str
    volume: int
    url: str
    issues: Optional[List[Issue]] = None
    error: Optional[str] = None

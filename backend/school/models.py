"""
School data records shown by the portal (events, students, results, materials).

Plain dataclasses with integer ids. Values are validated at the snapshot
boundary (see `snapshot.py`); the records themselves stay dumb.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

EVENT_TYPES = ("academic", "sports", "meeting", "cultural")
MATERIAL_TYPES = ("pdf", "doc", "ppt", "video", "image")
TERMS = ("Q1", "Q2", "Q3", "Q4", "Final")
GRADES = tuple(f"Grade {i}" for i in range(1, 8))
SUBJECTS = ("Math", "English", "Science", "History", "Art")


@dataclass
class SchoolImage:
    id: int
    url: str
    alt: str


@dataclass
class Event:
    id: int
    title: str
    date: str
    type: str
    description: str


@dataclass
class Student:
    id: int
    name: str
    grade: str
    email: str
    phone: str


@dataclass
class Result:
    id: int
    student_id: int
    subject: str
    score: int
    date: str
    term: str


@dataclass
class Material:
    id: int
    name: str
    type: str
    size: str
    upload_date: str


@dataclass
class SchoolData:
    events: List[Event] = field(default_factory=list)
    school_images: List[SchoolImage] = field(default_factory=list)
    materials: Dict[str, List[Material]] = field(default_factory=dict)
    students: List[Student] = field(default_factory=list)
    results: List[Result] = field(default_factory=list)

"""Demo dataset every new session starts from (not persisted)."""
from __future__ import annotations

from .models import Event, Material, Result, SchoolData, SchoolImage, Student

SCHOOL_NAME = "Sunshine Elementary"


def initial_data() -> SchoolData:
    """Return a fresh copy of the demo data (callers may mutate it)."""
    return SchoolData(
        events=[
            Event(1, "Science Fair", "2024-09-15", "academic", "Annual science exhibition"),
            Event(2, "Sports Day", "2024-09-20", "sports", "Inter-class competitions"),
            Event(3, "Parent Meeting", "2024-09-25", "meeting", "Quarterly progress review"),
        ],
        school_images=[
            SchoolImage(1, "https://images.unsplash.com/photo-1580582932707-520aed937b7b?w=800&h=400&fit=crop", "School Building"),
            SchoolImage(2, "https://images.unsplash.com/photo-1509062522246-3755977927d7?w=800&h=400&fit=crop", "Students Learning"),
            SchoolImage(3, "https://images.unsplash.com/photo-1497486751825-1233686d5d80?w=800&h=400&fit=crop", "Library"),
            SchoolImage(4, "https://images.unsplash.com/photo-1571019613454-1cb2f99b2d8b?w=800&h=400&fit=crop", "Science Lab"),
        ],
        materials={
            "Grade 1": [
                Material(1, "Math Workbook", "pdf", "2.3 MB", "2024-08-01"),
                Material(2, "Reading Exercises", "pdf", "1.8 MB", "2024-08-01"),
            ],
            "Grade 2": [
                Material(3, "Science Activities", "pdf", "3.1 MB", "2024-08-01"),
                Material(4, "Art Projects", "pdf", "2.7 MB", "2024-08-01"),
            ],
        },
        students=[
            Student(1, "Alice Johnson", "Grade 1", "alice@email.com", "123-456-7890"),
            Student(2, "Bob Smith", "Grade 1", "bob@email.com", "123-456-7891"),
            Student(3, "Carol Davis", "Grade 2", "carol@email.com", "123-456-7892"),
            Student(4, "David Wilson", "Grade 2", "david@email.com", "123-456-7893"),
        ],
        results=[
            Result(1, 1, "Math", 85, "2024-08-15", "Q1"),
            Result(2, 1, "English", 78, "2024-08-15", "Q1"),
            Result(3, 1, "Science", 92, "2024-08-15", "Q1"),
            Result(4, 2, "Math", 76, "2024-08-15", "Q1"),
            Result(5, 2, "English", 88, "2024-08-15", "Q1"),
            Result(6, 2, "Science", 79, "2024-08-15", "Q1"),
        ],
    )

"""
AulaFeed - Learning management with a gated student class feed.

Teachers build courses, lessons and classes and enroll groups of students;
students scroll through a feed of classes whose progress gates what comes next.
"""

__version__ = "0.3.0"

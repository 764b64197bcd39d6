from app.directory.models import Profile

ADMIN = ("admin@campus.edu", "admin123")


def make_profile(**overrides) -> Profile:
    data = {
        "name": "John Doe",
        "email": "john@campus.edu",
        "role": "student",
        "department": "Computer Science",
        "year_or_position": "3rd Year",
        "skills": ["Python", "Go"],
        "projects": ["Campus app"],
    }
    data.update(overrides)
    return Profile(**data)

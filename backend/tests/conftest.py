import pytest

from alumni_match.schemas import Profile, ProfileRole, Skill


def build_profile(profile_id: str = "p-1", skills=(), **fields) -> Profile:
    """Profile with skills given as names or (name, level) pairs."""
    parsed = []
    for skill in skills:
        if isinstance(skill, tuple):
            parsed.append(Skill(name=skill[0], level=skill[1]))
        else:
            parsed.append(Skill(name=skill))
    return Profile(id=profile_id, skills=parsed, **fields)


@pytest.fixture
def make_profile():
    return build_profile


@pytest.fixture
def student(make_profile):
    """Computer science student looking for a mentor in San Francisco."""
    return make_profile(
        "student-1",
        role=ProfileRole.STUDENT,
        name="John Doe",
        category="Computer Science",
        skills=["JavaScript", "Python"],
        interests=["Software Engineering", "AI"],
        location="San Francisco, CA",
        years_experience=0,
        is_seeking_mentorship=True,
    )


@pytest.fixture
def alumni_pool(make_profile):
    """Small candidate pool modelled on a university alumni network."""
    return [
        make_profile(
            "alum-1",
            role=ProfileRole.ALUMNI,
            name="Sarah Chen",
            category="Computer Science",
            current_role="Senior Software Engineer",
            current_company="Google",
            industry="Technology",
            skills=[("JavaScript", "expert"), "Python", "Machine Learning", "Cloud Architecture"],
            location="San Francisco, CA",
            years_experience=6,
            is_mentor=True,
            mentor_categories=["Software Engineering", "Career Growth"],
            bio="Passionate about AI and full-stack development.",
        ),
        make_profile(
            "alum-2",
            role=ProfileRole.ALUMNI,
            name="Michael Rodriguez",
            category="Business",
            current_role="Product Manager",
            current_company="Meta",
            industry="Technology",
            skills=["Product Strategy", "Data Analysis", "User Research", "Agile"],
            location="Seattle, WA",
            years_experience=5,
            is_mentor=True,
            mentor_categories=["Product Management"],
        ),
        make_profile(
            "alum-3",
            role=ProfileRole.ALUMNI,
            name="David Park",
            category="Business",
            current_role="Startup Founder",
            current_company="TechFlow Solutions",
            industry="Entrepreneurship",
            skills=["Leadership", "Fundraising"],
            location="Boston, MA",
            years_experience=8,
            is_mentor=False,
        ),
    ]

"""
Tests for match reasons and narrative insights.
"""
import pytest
from unittest.mock import AsyncMock, Mock, patch

from alumni_match.schemas import Criterion, CriterionKind
from alumni_match.services.reasons import (
    GENERIC_INSIGHT,
    MAX_REASONS,
    OpenAIInsightGenerator,
    TemplateInsightGenerator,
    generate_reasons,
    get_insight_generator,
    is_notable,
    notable_criteria,
    top_skills,
)

ALL_CRITERIA = [
    Criterion(kind=CriterionKind.CAREER_SIMILARITY, weight=0.3),
    Criterion(kind=CriterionKind.SKILL_COMPLEMENT, weight=0.25),
    Criterion(kind=CriterionKind.MENTORSHIP_FIT, weight=0.25),
    Criterion(kind=CriterionKind.GEOGRAPHIC_PROXIMITY, weight=0.2),
]


class TestNotableCriteria:

    @pytest.mark.parametrize(
        "kind, at_threshold, above",
        [
            (CriterionKind.CAREER_SIMILARITY, 0.7, 0.71),
            (CriterionKind.SKILL_COMPLEMENT, 0.6, 0.61),
            (CriterionKind.GEOGRAPHIC_PROXIMITY, 0.8, 1.0),
            (CriterionKind.MENTORSHIP_FIT, 0.7, 0.8),
        ],
    )
    def test_thresholds_are_exclusive(self, make_profile, kind, at_threshold, above):
        mentor = make_profile("c", is_mentor=True)

        assert not is_notable(kind, at_threshold, mentor)
        assert is_notable(kind, above, mentor)

    def test_mentorship_requires_mentor(self, make_profile):
        candidate = make_profile("c", is_mentor=False)

        assert not is_notable(CriterionKind.MENTORSHIP_FIT, 0.9, candidate)

    def test_order_follows_criteria(self, make_profile):
        subscores = {
            CriterionKind.CAREER_SIMILARITY: 0.8,
            CriterionKind.SKILL_COMPLEMENT: 0.2,
            CriterionKind.MENTORSHIP_FIT: 1.0,
            CriterionKind.GEOGRAPHIC_PROXIMITY: 1.0,
        }
        fired = notable_criteria(ALL_CRITERIA, subscores, make_profile("c", is_mentor=True))

        assert fired == [
            CriterionKind.CAREER_SIMILARITY,
            CriterionKind.MENTORSHIP_FIT,
            CriterionKind.GEOGRAPHIC_PROXIMITY,
        ]

    def test_zero_weight_never_fires(self, make_profile):
        criteria = [Criterion(kind=CriterionKind.GEOGRAPHIC_PROXIMITY, weight=0)]
        subscores = {CriterionKind.GEOGRAPHIC_PROXIMITY: 1.0}

        assert notable_criteria(criteria, subscores, make_profile("c")) == []


class TestGenerateReasons:

    def test_career_reason_names_industry(self, make_profile):
        candidate = make_profile("c", industry="Technology", category="Computer Science")

        reasons = generate_reasons(
            make_profile("s"), candidate, [CriterionKind.CAREER_SIMILARITY], 0.5
        )

        assert reasons == ["Strong career alignment in Technology"]

    def test_skill_reason_names_shared_skills(self, make_profile):
        seeker = make_profile("s", skills=["Python", "SQL", "Docker", "Go"])
        candidate = make_profile("c", skills=["python", "sql", "docker", "go"])

        reasons = generate_reasons(seeker, candidate, [CriterionKind.SKILL_COMPLEMENT], 0.5)

        assert reasons == ["Shares skills in Python, SQL, Docker"]

    def test_skill_reason_falls_back_to_top_skills(self, make_profile):
        candidate = make_profile(
            "c", skills=[("Excel", "beginner"), ("Tableau", "expert"), ("SQL", "advanced")]
        )

        reasons = generate_reasons(
            make_profile("s"), candidate, [CriterionKind.SKILL_COMPLEMENT], 0.5
        )

        assert reasons == ["Complementary skills in Tableau, SQL, Excel"]

    def test_mentorship_reason_mentions_experience(self, make_profile):
        candidate = make_profile("c", is_mentor=True, years_experience=6)

        reasons = generate_reasons(
            make_profile("s"), candidate, [CriterionKind.MENTORSHIP_FIT], 0.5
        )

        assert reasons == ["Excellent mentorship match - 6+ years experience"]

    def test_same_city_added_when_geography_did_not_fire(self, make_profile):
        seeker = make_profile("s", location="Boston, MA")
        candidate = make_profile("c", location="boston, ma")

        assert generate_reasons(seeker, candidate, [], 0.5) == ["Located in the same city"]

    def test_same_city_not_duplicated(self, make_profile):
        seeker = make_profile("s", location="Boston, MA")
        candidate = make_profile("c", location="Boston, MA")

        reasons = generate_reasons(
            seeker, candidate, [CriterionKind.GEOGRAPHIC_PROXIMITY], 0.5
        )

        assert reasons == ["Both located in Boston, MA"]

    @pytest.mark.parametrize(
        "score, sentence",
        [
            (0.81, "Excellent overall compatibility"),
            (0.8, "Strong professional alignment"),
            (0.61, "Strong professional alignment"),
        ],
    )
    def test_quality_sentence(self, make_profile, score, sentence):
        assert generate_reasons(make_profile("s"), make_profile("c"), [], score) == [sentence]

    def test_no_quality_sentence_below_bucket(self, make_profile):
        assert generate_reasons(make_profile("s"), make_profile("c"), [], 0.6) == []

    def test_capped_preserving_order(self, make_profile):
        seeker = make_profile("s", skills=["Python"], location="Austin, TX")
        candidate = make_profile(
            "c",
            industry="Technology",
            skills=["Python"],
            is_mentor=True,
            years_experience=10,
            location="Austin, TX",
        )
        fired = [
            CriterionKind.CAREER_SIMILARITY,
            CriterionKind.SKILL_COMPLEMENT,
            CriterionKind.MENTORSHIP_FIT,
            CriterionKind.GEOGRAPHIC_PROXIMITY,
        ]

        reasons = generate_reasons(seeker, candidate, fired, 0.95)

        assert len(reasons) == MAX_REASONS
        assert reasons[0].startswith("Strong career alignment")
        assert reasons[-1] == "Both located in Austin, TX"
        assert "Excellent overall compatibility" not in reasons


class TestTopSkills:

    def test_ties_keep_profile_order(self, make_profile):
        profile = make_profile("c", skills=["A", "B", ("C", "expert"), "D"])

        assert top_skills(profile) == ["C", "A", "B"]


class TestTemplateInsights:

    @pytest.mark.asyncio
    async def test_high_score_uses_first_two_sentences(self, make_profile):
        candidate = make_profile(
            "c",
            current_role="Senior Software Engineer",
            current_company="Google",
            category="Computer Science",
            years_experience=6,
        )

        insight = await TemplateInsightGenerator().generate(make_profile("s"), candidate, 0.9)

        assert insight.startswith("Senior Software Engineer at Google")
        assert "Computer Science with 6 years" in insight

    @pytest.mark.asyncio
    async def test_deterministic(self, make_profile):
        generator = TemplateInsightGenerator()
        seeker, candidate = make_profile("s"), make_profile("alum-42", industry="Healthcare")

        first = await generator.generate(seeker, candidate, 0.5)
        second = await generator.generate(seeker, candidate, 0.5)

        assert first == second

    @pytest.mark.asyncio
    async def test_missing_attributes_use_placeholders(self, make_profile):
        insight = await TemplateInsightGenerator().generate(
            make_profile("s"), make_profile("c"), 0.85
        )

        assert insight.startswith("This professional at their company")
        assert "several years" in insight

    @pytest.mark.asyncio
    async def test_failure_falls_back_to_generic(self, make_profile):
        generator = TemplateInsightGenerator()

        with patch.object(generator, "_sentences", side_effect=RuntimeError("boom")):
            insight = await generator.generate(make_profile("s"), make_profile("c"), 0.7)

        assert insight == GENERIC_INSIGHT


class TestOpenAIInsights:

    @pytest.mark.asyncio
    async def test_returns_model_content(self, make_profile):
        generator = OpenAIInsightGenerator(api_key="test-key")

        mock_response = Mock()
        mock_response.choices = [Mock(message=Mock(content=" Great mentor for AI. "))]

        with patch.object(generator, "_client") as mock_client:
            mock_client.chat.completions.create = AsyncMock(return_value=mock_response)

            insight = await generator.generate(make_profile("s"), make_profile("c"), 0.7)

        assert insight == "Great mentor for AI."
        prompt = mock_client.chat.completions.create.call_args.kwargs["messages"][0]["content"]
        assert "Match Score: 70.0%" in prompt

    @pytest.mark.asyncio
    async def test_api_error_falls_back_to_template(self, make_profile):
        generator = OpenAIInsightGenerator(api_key="test-key")
        seeker, candidate = make_profile("s"), make_profile("c")

        with patch.object(generator, "_client") as mock_client:
            mock_client.chat.completions.create = AsyncMock(side_effect=RuntimeError("timeout"))

            insight = await generator.generate(seeker, candidate, 0.9)

        assert insight == await TemplateInsightGenerator().generate(seeker, candidate, 0.9)

    @pytest.mark.asyncio
    async def test_empty_answer_falls_back_to_template(self, make_profile):
        generator = OpenAIInsightGenerator(api_key="test-key")

        mock_response = Mock()
        mock_response.choices = [Mock(message=Mock(content=""))]

        with patch.object(generator, "_client") as mock_client:
            mock_client.chat.completions.create = AsyncMock(return_value=mock_response)

            insight = await generator.generate(make_profile("s"), make_profile("c"), 0.9)

        assert insight.startswith("This professional")


class TestInsightFactory:

    def test_template(self):
        assert isinstance(get_insight_generator("template"), TemplateInsightGenerator)

    def test_openai(self):
        assert isinstance(
            get_insight_generator("openai", api_key="test-key"), OpenAIInsightGenerator
        )

    def test_openai_requires_key(self):
        with pytest.raises(ValueError):
            get_insight_generator("openai")

    def test_unknown(self):
        with pytest.raises(ValueError):
            get_insight_generator("gpt")

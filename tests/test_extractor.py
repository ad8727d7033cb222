"""
Tests for candidate profile extraction and profile files.
"""

import json
from unittest.mock import AsyncMock

import pytest

from resume.extractor import MAX_RESUME_CHARS, ProfileExtractor, load_profile, parse_profile
from shared.errors import EmptyResumeError, MalformedResponseError
from shared.models import CandidateProfile

EXTRACTED = {
    "name": "李四",
    "education": "硕士",
    "university": "浙江大学",
    "major": "软件工程",
    "graduationYear": 2026,
    "isFreshGrad": True,
    "workYears": None,
    "expectedCities": "杭州",
    "skills": ["Java", "Kafka"],
    "experience": "阿里巴巴实习",
    "jobPreference": "后端",
    "coreDomain": "",
    "atsScore": 81.4,
    "atsDimensions": {"education": 90, "skills": 140},
}


def extractor_with(result):
    llm = AsyncMock()
    llm.complete_json = AsyncMock(side_effect=lambda **kwargs: kwargs["parse"](result))
    return ProfileExtractor(llm=llm), llm


def test_parse_profile_applies_defaults_and_coercion():
    profile = parse_profile(EXTRACTED)

    assert profile.graduation_year == "2026"
    assert profile.expected_cities == ["杭州"]
    assert profile.work_years == 0
    assert profile.core_domain == "行业精英"
    assert profile.seniority_level == "待评估"
    assert profile.ats_score == 81
    assert profile.ats_dimensions.education == 90
    assert profile.ats_dimensions.skills == 100
    assert profile.ats_dimensions.project == 60


def test_parse_profile_rejects_non_object():
    with pytest.raises(MalformedResponseError):
        parse_profile(["not", "an", "object"])


async def test_extract_truncates_long_resume():
    extractor, llm = extractor_with(EXTRACTED)

    profile = await extractor.extract("x" * (MAX_RESUME_CHARS + 500))

    assert profile.name == "李四"
    prompt = llm.complete_json.call_args.kwargs["prompt"]
    assert prompt.count("x") == MAX_RESUME_CHARS


@pytest.mark.parametrize("text", ["", "   \n  ", None])
async def test_blank_resume_rejected(text):
    extractor, llm = extractor_with(EXTRACTED)

    with pytest.raises(EmptyResumeError):
        await extractor.extract(text)
    llm.complete_json.assert_not_awaited()


async def test_nothing_extracted_is_empty_resume():
    extractor, _ = extractor_with({"name": "王五"})

    with pytest.raises(EmptyResumeError):
        await extractor.extract("一些无关文本")


def test_load_profile_from_yaml_and_json(tmp_path):
    yaml_path = tmp_path / "profile.yaml"
    yaml_path.write_text(
        "name: 张三\ngraduationYear: 2026届\neducation: 本科\nmajor: 数学\nskills: [Python]\n",
        encoding="utf-8",
    )
    json_path = tmp_path / "profile.json"
    json_path.write_text(
        json.dumps({"name": "张三", "graduation_year": "2026届", "major": "数学"}, ensure_ascii=False),
        encoding="utf-8",
    )

    from_yaml = load_profile(yaml_path)
    from_json = load_profile(json_path)

    assert isinstance(from_yaml, CandidateProfile)
    assert from_yaml.skills == ["Python"]
    assert from_json.graduation_year == "2026届"
    assert from_yaml.to_summary()["cohort"] == from_json.to_summary()["cohort"]


def test_load_profile_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_profile(tmp_path / "missing.yaml")

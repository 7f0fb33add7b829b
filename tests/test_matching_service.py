from campuslink.services.matching_service import (
    MentorRanker,
    generate_match_reason,
    parse_skill_query,
    resolve_search_skills
)

CALLSIGNS = ["alpha", "bravo", "charlie", "delta", "echo", "foxtrot", "golf", "hotel", "india", "juliet"]


def test_parse_skill_query_splits_and_trims():
    assert parse_skill_query(" python, guitar ;chess;; , ") == ["python", "guitar", "chess"]
    assert parse_skill_query("") == []
    assert parse_skill_query(None) == []


def test_typed_query_replaces_profile_skills():
    assert resolve_search_skills("guitar", ["python", "chess"]) == ["guitar"]
    assert resolve_search_skills("  ", ["python"]) == ["python"]
    assert resolve_search_skills(" ; , ", ["python"]) == ["python"]


def test_ranks_by_score_descending(profiles, make_profile):
    make_profile("searcher", skills_to_learn=CALLSIGNS)
    make_profile("half", skills_have=CALLSIGNS[:5])
    make_profile("most", skills_have=CALLSIGNS[:8])

    results = MentorRanker(profiles).search("searcher", "", CALLSIGNS)

    assert [(m.profile.id, m.score) for m in results] == [("most", 80), ("half", 50)]


def test_equal_scores_prefer_more_matched_skills(profiles, make_profile):
    make_profile("combined", skills_have=["Python and Java"])
    make_profile("separate", skills_have=["Python", "Java"])

    results = MentorRanker(profiles).search("searcher", "python, java", [])

    assert [m.profile.id for m in results] == ["separate", "combined"]
    assert [m.score for m in results] == [100, 100]
    assert results[0].matched_skills == ["Python", "Java"]
    assert results[1].matched_skills == ["Python and Java"]


def test_residual_ties_keep_read_order(profiles, make_profile):
    make_profile("first", skills_have=["Guitar"])
    make_profile("second", skills_have=["Guitar"])
    make_profile("third", skills_have=["Guitar"])

    results = MentorRanker(profiles).search("searcher", "guitar", [])

    assert [m.profile.id for m in results] == ["first", "second", "third"]


def test_excludes_searcher_zero_scores_and_non_mentors(profiles, make_profile):
    make_profile("searcher", skills_have=["Python"], skills_to_learn=["python"])
    make_profile("learner_only", skills_have=[], skills_to_learn=["python"])
    make_profile("unrelated", skills_have=["Cooking"])
    make_profile("mentor", skills_have=["Python Programming"])

    results = MentorRanker(profiles).search("searcher", None, ["python"])

    assert [m.profile.id for m in results] == ["mentor"]


def test_profile_skills_used_when_query_empty(profiles, make_profile):
    make_profile("pianist", skills_have=["Piano"])
    make_profile("coder", skills_have=["Python"])

    results = MentorRanker(profiles).search("searcher", "", ["piano"])

    assert [m.profile.id for m in results] == ["pianist"]


def test_no_skills_means_no_results(profiles, make_profile):
    make_profile("mentor", skills_have=["Python"])

    assert MentorRanker(profiles).search("searcher", "", []) == []


def test_results_truncated_to_limit(profiles, make_profile):
    for i in range(25):
        make_profile("mentor%02d" % i, skills_have=["Python"])

    results = MentorRanker(profiles, limit=20).search("searcher", "python", [])

    assert len(results) == 20
    assert results[0].profile.id == "mentor00"
    assert results[-1].profile.id == "mentor19"


def test_match_reason_templates():
    wanted = ["python", "guitar", "chess"]
    assert generate_match_reason(wanted, []) == "This mentor has relevant experience that may help you."
    assert generate_match_reason(wanted, ["Python"]) == (
        "You want to learn python. This mentor has experience in Python."
    )
    assert generate_match_reason(wanted, ["Python", "Guitar"]) == (
        "You want to learn python and guitar. This mentor can teach Python, Guitar."
    )
    assert generate_match_reason(wanted, ["A", "B", "C", "D", "E"]) == (
        "You want to learn python and more. This mentor can teach A, B, C and 2 other skills."
    )


def test_search_result_carries_reason(profiles, make_profile):
    make_profile("mentor", skills_have=["Python Programming", "Photography"])

    [match] = MentorRanker(profiles).search("searcher", "python, guitar", [])

    assert match.score == 50
    assert match.matched_skills == ["Python Programming"]
    assert match.reason == "You want to learn python. This mentor has experience in Python Programming."

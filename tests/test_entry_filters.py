"""Tests for the keep-valid, drop-invalid policy on finalize sub-entries."""

from datetime import date

from app.schemas.sessions import OutcomeMeasureEntry, SessionExerciseEntry, SessionStart
from app.services.scheduling_service import keep_valid_entries


def test_exercise_entries_keep_only_positive_counts() -> None:
    """Entries with non-positive IDs, sets or reps are dropped."""
    kept = keep_valid_entries(
        [
            {"exerciseId": 1, "sets": 3, "reps": 10},
            {"exerciseId": 2, "sets": 0, "reps": 10},
            {"exerciseId": 0, "sets": 3, "reps": 10},
            {"exerciseId": 3, "sets": 2, "reps": -1},
            {"exerciseId": 4, "sets": 2, "reps": 5, "resistance": " Red band "},
            "not-an-entry",
        ],
        SessionExerciseEntry,
        "exercise",
    )

    assert [entry.exercise_id for entry in kept] == [1, 4]
    assert kept[0].resistance == "Bodyweight"
    assert kept[1].resistance == "Red band"


def test_outcome_entries_require_name_score_and_date() -> None:
    """Outcome entries need a name, a finite in-range score and a date."""
    kept = keep_valid_entries(
        [
            {"measureName": "LEFS", "score": 55, "takenOn": "2026-05-01"},
            {"measureName": "", "score": 55, "takenOn": "2026-05-01"},
            {"measureName": "NPRS", "score": "nan", "takenOn": "2026-05-01"},
            {"measureName": "ODI", "score": -1, "takenOn": "2026-05-01"},
            {"measureName": "PSFS", "score": 7, "takenOn": "yesterday"},
        ],
        OutcomeMeasureEntry,
        "outcome",
    )

    assert len(kept) == 1
    assert kept[0].measure_name == "LEFS"
    assert kept[0].taken_on == date(2026, 5, 1)


def test_start_request_tolerates_null_lists_and_bad_pain() -> None:
    """Null lists become empty and invalid pain values are ignored."""
    request = SessionStart.model_validate(
        {
            "status": "Completed",
            "painPre": 11,
            "painPost": 4,
            "sessionExercises": None,
            "outcomeMeasures": None,
        }
    )

    assert request.session_exercises == []
    assert request.outcome_measures == []
    assert request.pain_pre is None
    assert request.pain_post == 4
    assert "notes" not in request.model_fields_set

"""Unit tests for duplicate-person detection and position classification."""

from datetime import date

import pytest

from payroll_validation.config import PositionSettings
from payroll_validation.models import Collection, Severity, ValidationCategory, ValidationResult
from payroll_validation.validators import DuplicatePersonDetector, PositionClassifier
from payroll_validation.validators.duplicates import (
    birth_date_similarity,
    integrity_grade,
    name_similarity,
    person_key,
)
from payroll_validation.validators.positions import (
    classify_title,
    clean_title,
    hierarchy_level,
    title_problem,
)
from tests.fixtures.records import make_active, make_termination, snapshot

# Identifiers of a different person, used to capture CLEAN_ACTIVE's name twice.
OTHER_IDS = {
    "tax_id": "PELA850101AB1",
    "population_id": "PELA850101MDFRPN05",
    "social_security_id": "12108501235",
}


def _by_severity(results, severity):
    return [r for r in results if r.severity is severity]


def _summary(results):
    (summary,) = [r for r in results if r.severity is Severity.INFO and "integrity_score" in r.metadata]
    return summary.metadata


class TestDuplicateHelpers:
    def test_person_key_folds_case_accents_and_spacing(self):
        assert person_key("  Gómez   Díaz, eduardo ") == "GOMEZ DIAZ EDUARDO"
        assert person_key(None) == ""

    def test_name_similarity(self):
        assert name_similarity("GOMEZ DIAZ EDUARDO", "GOMEZ DIAZ EDUARDO") == 1.0
        assert name_similarity("GOMEZ DIAZ EDUARDO", "") == 0.0
        assert name_similarity("GOMEZ DIAZ EDUARDO", "GOMES DIAZ EDUARDO") > 0.9
        assert name_similarity("GOMEZ DIAZ EDUARDO", "PEREZ LOPEZ ANA") < 0.6

    @pytest.mark.parametrize(
        "other, expected",
        [(date(1990, 5, 1), 1.0), (date(1990, 5, 2), 0.9), (date(1990, 5, 8), 0.7), (date(1990, 5, 31), 0.5), (date(1990, 7, 1), 0.0), (None, 0.0)],
    )
    def test_birth_date_similarity(self, other, expected):
        assert birth_date_similarity(date(1990, 5, 1), other) == expected

    @pytest.mark.parametrize("score, grade", [(100, "EXCELENTE"), (80, "BUENO"), (70, "REGULAR"), (60, "DEFICIENTE"), (40, "DEFICIENTE")])
    def test_integrity_grade(self, score, grade):
        assert integrity_grade(score) == grade


class TestDuplicatePersonDetector:
    def test_empty_snapshot(self, validation_config):
        assert DuplicatePersonDetector(validation_config).validate(snapshot()) == []

    def test_single_record_only_reports_summary(self, validation_config, single_record_snapshot):
        results = DuplicatePersonDetector(validation_config).validate(single_record_snapshot)
        assert [r.severity for r in results] == [Severity.INFO]
        summary = _summary(results)
        assert summary["integrity_score"] == 100
        assert summary["integrity"] == "EXCELENTE"
        assert summary["records_compared"] == 1

    def test_same_person_under_different_identifiers(self, validation_config):
        data = snapshot([make_active(1), make_active(2, **OTHER_IDS)])
        results = DuplicatePersonDetector(validation_config).validate(data)

        (warning,) = _by_severity(results, Severity.WARNING)
        assert warning.field == "name"
        assert warning.category is ValidationCategory.CONSISTENCY_VIOLATION
        assert warning.affected_rows == (1, 2)
        assert warning.metadata["groups"] == [
            {
                "name": "GOMEZ DIAZ EDUARDO",
                "birth_date": "1990-05-01",
                "rows": [1, 2],
                "tax_ids": ["GODE900501HJ3", "PELA850101AB1"],
            }
        ]
        assert not _by_severity(results, Severity.CRITICAL)
        assert _summary(results)["integrity_score"] == 80

    def test_shared_identifiers_lower_the_score(self, validation_config):
        results = DuplicatePersonDetector(validation_config).validate(snapshot([make_active(1), make_active(2)]))
        summary = _summary(results)
        assert summary["shared_identifiers"] == 3
        assert summary["integrity_score"] == 40
        assert summary["integrity"] == "DEFICIENTE"

    def test_near_identical_names_born_the_same_day(self, validation_config):
        data = snapshot([make_active(1), make_active(2, name="GOMES DIAZ EDUARDO", **OTHER_IDS)])
        results = DuplicatePersonDetector(validation_config).validate(data)

        (warning,) = _by_severity(results, Severity.WARNING)
        assert warning.affected_rows == (1, 2)
        (pair,) = warning.metadata["pairs"]
        assert pair["rows"] == [1, 2]
        assert pair["similarity"] >= validation_config.duplicates.near_match_threshold
        assert _summary(results)["near_pairs"] == 1

    def test_same_name_born_a_day_apart(self, validation_config):
        data = snapshot([make_active(1), make_active(2, birth_date=date(1990, 5, 2), **OTHER_IDS)])
        pairs = DuplicatePersonDetector(validation_config).near_matches(data.active_personnel)
        assert [p["rows"] for p in pairs] == [[1, 2]]
        assert pairs[0]["similarity"] == pytest.approx(0.96)

    def test_births_outside_the_window_are_not_compared(self, validation_config):
        data = snapshot([make_active(1), make_active(2, birth_date=date(1990, 5, 4), **OTHER_IDS)])
        results = DuplicatePersonDetector(validation_config).validate(data)
        assert [r.severity for r in results] == [Severity.INFO]

    def test_different_people_on_the_same_day(self, validation_config):
        data = snapshot([make_active(1), make_active(2, name="PEREZ LOPEZ ANA", **OTHER_IDS)])
        assert DuplicatePersonDetector(validation_config).near_matches(data.active_personnel) == []

    def test_identifiers_shared_with_terminations_under_another_rfc(self, validation_config):
        data = snapshot([make_active(1)], [make_termination(1, tax_id="GODE900501AB9")])
        results = DuplicatePersonDetector(validation_config).validate(data)

        critical = _by_severity(results, Severity.CRITICAL)
        assert sorted(r.field for r in critical) == ["population_id", "social_security_id"]
        assert all(r.collection is Collection.POPULATION for r in critical)
        by_field = {r.field: r for r in critical}
        assert by_field["population_id"].metadata["matches"] == [
            {"value": "GODE900501HJCMZD09", "active_row": 1, "termination_row": 1}
        ]
        assert _summary(results)["cross_matches"] == 2

    def test_same_rfc_in_both_lists_is_left_to_tax_id_checks(self, validation_config):
        data = snapshot([make_active(1)], [make_termination(1)])
        results = DuplicatePersonDetector(validation_config).validate(data)
        assert not _by_severity(results, Severity.CRITICAL)


class TestPositionHelpers:
    @pytest.mark.parametrize(
        "raw, expected",
        [("  Gerente  de Ventas ", "GERENTE DE VENTAS"), ("Jefe de Almacén", "JEFE DE ALMACEN"), ("", ""), (None, "")],
    )
    def test_clean_title(self, raw, expected):
        assert clean_title(raw) == expected

    @pytest.mark.parametrize(
        "title, problem",
        [
            ("PRUEBA", "placeholder"),
            ("N/A", "placeholder"),
            ("X", "too_short"),
            ("A" * 101, "too_long"),
            ("GERENTE #1", "invalid_characters"),
            ("GERENTE DE VENTAS", None),
            ("AUXILIAR ADMINISTRATIVO (TURNO B)", None),
        ],
    )
    def test_title_problem(self, title, problem):
        assert title_problem(title) == problem

    @pytest.mark.parametrize(
        "title, category",
        [
            ("GERENTE DE VENTAS", "GERENCIAL"),
            ("DIRECTOR DE OPERACIONES", "DIRECTIVO"),
            ("INGENIERO DE SOPORTE", "PROFESIONAL"),
            ("AUXILIAR CONTABLE", "ADMINISTRATIVO"),
            ("CHOFER", "OPERATIVO"),
            ("BECARIO", None),
        ],
    )
    def test_classify_title(self, title, category):
        assert classify_title(title, PositionSettings().categories) == category

    @pytest.mark.parametrize(
        "title, level",
        [
            ("DIRECTOR GENERAL", (1, "C_LEVEL")),
            ("DIRECTOR DE VENTAS", (2, "DIRECTOR")),
            ("JEFE DE ALMACEN", (4, "JEFE")),
            ("ANALISTA DE NOMINA", (6, "EJECUTIVO")),
            ("CHOFER", None),
        ],
    )
    def test_hierarchy_level_matches_whole_words(self, title, level):
        assert hierarchy_level(title, PositionSettings().hierarchy_levels) == level

    def test_catalog_keywords_are_uppercased(self):
        settings = PositionSettings(categories={"ventas": ["vendedor"]})
        assert settings.categories == {"VENTAS": ["VENDEDOR"]}

    def test_empty_catalog_rejected(self):
        with pytest.raises(ValueError):
            PositionSettings(hierarchy_levels={})


class TestPositionClassifier:
    def test_no_positions(self, validation_config, single_record_snapshot):
        assert PositionClassifier(validation_config).validate(single_record_snapshot) == []

    def test_placeholder_and_malformed_titles(self, validation_config):
        data = snapshot(
            [
                make_active(1, position="Prueba"),
                make_active(2, position="Gerente #1"),
                make_active(3, position="Analista"),
            ]
        )
        results = PositionClassifier(validation_config).validate(data)

        (warning,) = _by_severity(results, Severity.WARNING)
        assert warning.field == "position"
        assert warning.category is ValidationCategory.FORMAT_INVALID
        assert warning.affected_rows == (1, 2)
        assert warning.metadata["problems"] == {"invalid_characters": 1, "placeholder": 1}
        assert warning.metadata["samples"] == ["Prueba", "Gerente #1"]

    def test_junior_level_paid_above_senior_level(self, validation_config):
        data = snapshot(
            [
                make_active(1, position="Gerente de Ventas", base_salary=30000.0),
                make_active(2, position="Gerente de Compras", base_salary=32000.0),
                make_active(3, position="Auxiliar Contable", base_salary=40000.0),
            ]
        )
        results = PositionClassifier(validation_config).validate(data)

        (warning,) = _by_severity(results, Severity.WARNING)
        assert warning.field == "base_salary"
        assert warning.category is ValidationCategory.CONSISTENCY_VIOLATION
        assert warning.affected_rows == (3,)
        assert warning.metadata["inversions"] == [
            {"senior_level": "GERENTE", "junior_level": "AUXILIAR", "senior_average": 31000.0, "junior_average": 40000.0}
        ]

    def test_pay_falling_with_level_is_consistent(self, validation_config):
        data = snapshot(
            [
                make_active(1, position="Gerente de Ventas", base_salary=30000.0),
                make_active(2, position="Gerente de Compras", base_salary=32000.0),
                make_active(3, position="Auxiliar Contable", base_salary=12000.0),
            ]
        )
        results = PositionClassifier(validation_config).validate(data)
        assert not _by_severity(results, Severity.WARNING)

    def test_wide_pay_spread_within_one_title(self, validation_config):
        data = snapshot(
            [
                make_active(1, position="Analista", base_salary=10000.0),
                make_active(2, position="analista", base_salary=15000.0),
                make_active(3, position="ANALISTA ", base_salary=20000.0),
            ]
        )
        results = PositionClassifier(validation_config).validate(data)

        (spread,) = [r for r in results if r.field == "base_salary"]
        assert spread.severity is Severity.INFO
        assert spread.collection is Collection.ACTIVE
        assert spread.affected_rows == (1, 2, 3)
        assert spread.metadata["titles"]["ANALISTA"]["count"] == 3
        assert spread.metadata["titles"]["ANALISTA"]["spread"] == pytest.approx(0.6667)

    def test_summary(self, validation_config):
        data = snapshot(
            [
                make_active(1, position="Gerente de Ventas", base_salary=30000.0),
                make_active(2, position="Gerente de Compras", base_salary=32000.0),
                make_active(3, position="Auxiliar Contable", base_salary=12000.0),
                make_active(4, position="Becario", base_salary=8000.0),
            ]
        )
        upstream = {
            "SalaryValidator": [
                ValidationResult(
                    "SalaryValidator", "base_salary", "message", Severity.WARNING,
                    ValidationCategory.STATISTICAL_OUTLIER, affected_rows=(3,),
                    metadata={"position_keyword": "AUXILIAR"},
                )
            ]
        }
        results = PositionClassifier(validation_config).validate(data, upstream)

        (summary,) = [r for r in results if r.field == "position"]
        assert summary.severity is Severity.INFO
        assert summary.message == "3 of 4 position titles classified into 2 job families"
        assert summary.metadata["categories"] == {"ADMINISTRATIVO": 1, "GERENCIAL": 2, "UNCLASSIFIED": 1}
        assert summary.metadata["hierarchy_levels"] == {"AUXILIAR": 1, "GERENTE": 2}
        assert summary.metadata["unique_positions"] == 4
        assert summary.metadata["management_ratio"] == 0.5
        assert summary.metadata["span_of_control"] == 1.0
        assert summary.metadata["unclassified_titles"] == ["BECARIO"]
        assert summary.metadata["salary_band_conflicts"] == [3]

    def test_termination_turnover_by_position(self, validation_config):
        terminations = [make_termination(i, position="Chofer") for i in range(1, 4)]
        terminations.append(make_termination(4, position="Auxiliar"))
        results = PositionClassifier(validation_config).validate(snapshot([make_active(1)], terminations))

        (turnover,) = results
        assert turnover.severity is Severity.INFO
        assert turnover.collection is Collection.TERMINATIONS
        assert turnover.metadata["by_position"] == {"CHOFER": 3, "AUXILIAR": 1}
        assert turnover.metadata["high_turnover"] == ["CHOFER"]
        assert "high turnover in CHOFER" in turnover.message

"""Tests for the rule-based tone analyzer."""

import pytest

from tonemeter.moderation.heuristics import (
    AGGRESSIVE_ISSUE,
    AGGRESSIVE_TERMS,
    EXCLAMATION_ISSUE,
    IMPAIRMENT_ISSUE,
    NEUTRAL_SUGGESTION,
    SHOUTING_ISSUE,
    HeuristicAnalyzer,
    levenshtein,
)


def test_every_aggressive_term_is_flagged():
    analyzer = HeuristicAnalyzer()
    for term in AGGRESSIVE_TERMS:
        result = analyzer.analyze(f"Mirá, {term} pasa lo mismo con los horarios.")
        assert result.has_issues, term
        assert AGGRESSIVE_ISSUE in result.issues


def test_aggressive_vocabulary_adds_a_single_issue():
    result = HeuristicAnalyzer().analyze("sos un idiota y un inútil, siempre tu culpa")
    assert result.issues.count(AGGRESSIVE_ISSUE) == 1


def test_aggressive_match_is_case_insensitive():
    result = HeuristicAnalyzer().analyze("Eso fue Culpa Tuya")
    assert AGGRESSIVE_ISSUE in result.issues


def test_extra_terms_extend_vocabulary():
    analyzer = HeuristicAnalyzer(extra_terms=["Mentiroso"])
    assert analyzer.analyze("sos un mentiroso").has_issues
    assert not HeuristicAnalyzer().analyze("sos un mentiroso").has_issues


def test_shouting_detected():
    result = HeuristicAnalyzer().analyze("TRAELO A LAS OCHO POR FAVOR")
    assert SHOUTING_ISSUE in result.issues


def test_no_shouting_for_short_text():
    # length <= 10 never counts as shouting, whatever the case
    assert SHOUTING_ISSUE not in HeuristicAnalyzer().analyze("HOLA OK").issues
    assert SHOUTING_ISSUE not in HeuristicAnalyzer().analyze("ABCDEFGHIJ").issues


def test_no_shouting_at_ratio_threshold():
    text = "ABCdefghijk"  # 3 of 11 letters upper-case
    assert SHOUTING_ISSUE not in HeuristicAnalyzer().analyze(text).issues


def test_accented_capitals_count_as_upper_case():
    result = HeuristicAnalyzer().analyze("ÁÉÍÓÚÑ ÁÉÍÓÚÑ")
    assert SHOUTING_ISSUE in result.issues


def test_exclamation_boundary():
    analyzer = HeuristicAnalyzer()
    assert EXCLAMATION_ISSUE not in analyzer.analyze("Nos vemos mañana!!!").issues
    assert EXCLAMATION_ISSUE in analyzer.analyze("Nos vemos mañana!!!!").issues


def test_stretched_letters_flag_impairment():
    result = HeuristicAnalyzer().analyze("holaaaa quee tallll estassss")
    assert IMPAIRMENT_ISSUE in result.issues
    assert result.has_issues


def test_systematic_misspellings_flag_impairment():
    result = HeuristicAnalyzer().analyze("grasias mañama visrnes colejio escuala")
    assert IMPAIRMENT_ISSUE in result.issues


def test_single_typo_is_not_impairment():
    result = HeuristicAnalyzer().analyze("Mañama paso a buscar a los chicos al colegio")
    assert IMPAIRMENT_ISSUE not in result.issues


def test_combined_scenario_reports_multiple_issues():
    result = HeuristicAnalyzer().analyze("IDIOTA!!!! nunca haces nada bien!!!!")
    assert result.has_issues
    assert len(result.issues) >= 2
    assert result.issues[0] == AGGRESSIVE_ISSUE
    assert EXCLAMATION_ISSUE in result.issues
    assert result.suggestion == NEUTRAL_SUGGESTION


def test_polite_message_is_clean():
    result = HeuristicAnalyzer().analyze("¿Podés confirmarme el horario de retiro del viernes?")
    assert result.has_issues is False
    assert result.issues == ()
    assert result.suggestion == ""


def test_empty_text_is_clean():
    assert not HeuristicAnalyzer().analyze("").has_issues


def test_levenshtein():
    assert levenshtein("gracias", "gracias") == 0
    assert levenshtein("grasias", "gracias") == 1
    assert levenshtein("kitten", "sitting") == 3
    assert levenshtein("", "abc") == 3
    assert levenshtein("abc", "") == 3


@pytest.mark.parametrize(
    "text",
    [
        "Buenas tardes, te mando la foto del boletín y la nota de la maestra.",
        "Perfecto, nos vemos el sábado en la plaza, llevo la merienda para todos.",
        "El pediatra dijo que tiene que tomar el jarabe cada ocho horas durante cinco días.",
        "Le compré zapatillas nuevas y un pantalón para gimnasia.",
        "Mañana tiene turno con la dentista, después la llevo a natación.",
        "El sábado hay cumpleaños de Sofía en el salón, lo retiro a las siete.",
    ],
)
def test_ordinary_logistics_messages_are_clean(text):
    result = HeuristicAnalyzer().analyze(text)
    assert result.has_issues is False, result.issues


def test_real_short_words_two_edits_from_the_dictionary_are_not_misspellings():
    analyzer = HeuristicAnalyzer(dictionary=["nada", "todo", "para", "sábado"])
    assert analyzer.impairment_signals("mando foto nota plaza") == 0


def test_few_misspellings_among_many_words_are_not_impairment():
    text = "grasias por buscar a los chicos, mañama los llevo al colegio y después a la escuela"
    assert IMPAIRMENT_ISSUE not in HeuristicAnalyzer().analyze(text).issues

from typing import Dict, List, Optional, Tuple


def normalize_answer(text: Optional[str]) -> str:
    return " ".join((text or "").split()).casefold()


def is_correct(quiz_type: str, question, answer) -> bool:
    if quiz_type == "SHORT_ANSWER":
        expected = normalize_answer(question.expected_answer)
        return bool(expected) and normalize_answer(answer.answer_text) == expected
    if answer.selected_option_index is None:
        return False
    return question.correct_option_index == answer.selected_option_index


def percentage(score: int, total: int) -> float:
    if not total:
        return 0.0
    return round(score / total * 100, 2)


def grade(quiz_type: str, questions: List, answers: List) -> Tuple[int, List[Tuple[object, object, bool]]]:
    """Score submitted answers against a quiz's questions.

    Answers for unknown question ids are skipped; if a question is answered
    twice only the first answer counts. Returns the number of correct answers
    and one ``(question, answer, correct)`` row per graded answer.
    """
    by_id: Dict[int, object] = {q.id: q for q in questions}
    seen = set()
    rows = []
    score = 0
    for answer in answers:
        question = by_id.get(answer.question_id)
        if question is None or question.id in seen:
            continue
        seen.add(question.id)
        correct = is_correct(quiz_type, question, answer)
        if correct:
            score += 1
        rows.append((question, answer, correct))
    return score, rows


def attempt_status(attempt) -> str:
    # 没有重做入口：一旦有记录就是最终结果
    return "completed" if attempt is not None else "not_started"

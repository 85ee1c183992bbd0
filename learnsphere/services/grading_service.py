"""
Quiz grading service
Exact match against the stored option text; pure, no model calls
"""
import logging
from collections import Counter
from typing import Any, Dict, List, Mapping, Optional

from learnsphere.config import settings

logger = logging.getLogger(__name__)

NOT_ANSWERED = "Not answered"


def round_percentage(correct: int, total: int) -> int:
    """round(correct / total * 100), halves rounded up, 0 for an empty quiz"""
    if total <= 0:
        return 0
    return (200 * correct + total) // (2 * total)


def _normalize(value: Any) -> str:
    return " ".join(str(value).split())


class GradingService:
    """
    Service for grading quiz submissions

    Strategy:
    - Answers may be option text or an option index; both compare as text
    - Questions missing from the submission count as incorrect
    - No partial credit, no negative marking
    """

    PERFORMANCE_LEVELS = (
        (90, "Excellent", "Outstanding work! You have mastered this material."),
        (75, "Good", "Good job! You have a solid understanding with a few areas to polish."),
        (60, "Fair", "Fair performance. Review the topics you missed to strengthen your understanding."),
        (50, "Needs Work", "You are getting there. Focus on the core concepts and try again."),
        (0, "Poor", "This material needs more study. Revisit the summary and try again."),
    )

    def score(
        self,
        questions: List[Dict[str, Any]],
        submitted: Mapping[str, Any],
        passing_score: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Grade a complete quiz submission

        Args:
            questions: Stored questions {id, text, options, correctAnswer, ...}
            submitted: User's answers {questionId: answer}
            passing_score: Percentage needed to pass (default PASSING_SCORE)

        Returns:
            {correctCount, totalQuestions, percentageScore, review, areasToImprove,
             performanceLevel, feedback, passed}
        """
        passing_score = settings.PASSING_SCORE if passing_score is None else passing_score
        review = []
        missed_topics: Counter = Counter()

        for question in questions:
            answer = self._resolve(question, submitted.get(question["id"]))
            is_correct = answer is not None and _normalize(answer) == _normalize(question["correctAnswer"])
            topic = question.get("topic") or "General"

            if not is_correct:
                missed_topics[topic] += 1

            review.append({
                "questionId": question["id"],
                "questionText": question.get("text", ""),
                "yourAnswer": answer if answer is not None else NOT_ANSWERED,
                "correctAnswer": question["correctAnswer"],
                "isCorrect": is_correct,
                "explanation": question.get("explanation", ""),
                "difficulty": question.get("difficulty", "medium"),
                "topic": topic,
            })

        correct = sum(1 for item in review if item["isCorrect"])
        total = len(questions)
        percentage = round_percentage(correct, total)
        level, feedback = self.performance_level(percentage)

        areas = [
            {
                "topic": topic,
                "missed": missed,
                "reason": f"Missed {missed} question{'s' if missed != 1 else ''} on this topic",
            }
            for topic, missed in missed_topics.most_common()
        ]

        logger.info(f"Quiz graded: {correct}/{total} ({percentage}%), weak topics: {list(missed_topics)}")

        return {
            "correctCount": correct,
            "totalQuestions": total,
            "percentageScore": percentage,
            "review": review,
            "areasToImprove": areas,
            "performanceLevel": level,
            "feedback": feedback,
            "passed": percentage >= passing_score,
        }

    def performance_level(self, percentage: int):
        for threshold, level, feedback in self.PERFORMANCE_LEVELS:
            if percentage >= threshold:
                return level, feedback
        return self.PERFORMANCE_LEVELS[-1][1:]

    def _resolve(self, question: Dict[str, Any], answer: Any) -> Optional[str]:
        """Submitted answer as option text, None when unanswered"""
        if answer is None or isinstance(answer, bool):
            return None
        options = question.get("options") or []
        if isinstance(answer, int):
            return options[answer] if 0 <= answer < len(options) else str(answer)
        answer = str(answer).strip()
        return answer or None


# Global instance
grading_service = GradingService()

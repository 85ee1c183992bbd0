"""
Prompt templates for every model-backed artifact
"""
from typing import List


SUMMARY_INSTRUCTIONS = {
    "short": """Create a concise summary with 5-7 bullet points covering only the most essential information.
Each bullet should be one clear sentence. Use "- " for bullets.""",
    "medium": """Create a structured summary with:
1. A 2-3 sentence overview
2. Main topics as "## " headings, each with 2-4 bullet points
3. Key concepts and terminology
4. A short conclusion""",
    "detailed": """Create a comprehensive study summary with:
1. An executive overview paragraph
2. Every major section as a "## " heading with detailed explanations
3. Important definitions, formulas, examples and their significance
4. Relationships between concepts
5. A "## Further Reading" section suggesting related topics to explore""",
}


def summary_prompt(content: str, summary_type: str) -> str:
    return f"""You are an expert educator summarizing study material for a student.

{SUMMARY_INSTRUCTIONS[summary_type]}

Write in clear markdown. Do not invent facts that are not in the material.

Study material:
\"\"\"
{content}
\"\"\"
"""


def key_insights_prompt(content: str, count: int = 8) -> str:
    return f"""Extract the {count} most important key points a student must remember from the study material below.
Each key point is a single complete sentence.

Return ONLY a JSON array of strings (no markdown, no preamble):
["First key point.", "Second key point."]

Study material:
\"\"\"
{content}
\"\"\"
"""


def quiz_prompt(content: str, num_questions: int, focus: str = "", difficulty_mix: str = "") -> str:
    focus_line = f"\nFocus on these topics: {focus}\n" if focus else ""
    mix_line = f"\nDifficulty distribution: {difficulty_mix}\n" if difficulty_mix else ""
    return f"""You are an expert educator writing a multiple-choice quiz from the study material below.
{focus_line}{mix_line}
Generate EXACTLY {num_questions} questions. Each question has exactly 4 options and one correct answer.
Distractors should reflect common misconceptions. "correctAnswer" must be the exact text of the correct option.

Return ONLY valid JSON in this exact format (no markdown, no preamble):
[
  {{
    "question": "Question text here?",
    "options": ["Option A", "Option B", "Option C", "Option D"],
    "correctAnswer": "Option B",
    "explanation": "Why Option B is correct.",
    "difficulty": "easy|medium|hard",
    "topic": "Topic name"
  }}
]

Study material:
\"\"\"
{content}
\"\"\"
"""


LEVEL_GUIDANCE = {
    "beginner": "Assume no prior knowledge. Start from fundamentals, use plain language and many examples. Use 3 phases.",
    "intermediate": "Assume the basics are known. Focus on application and connecting concepts. Use 4 phases.",
    "advanced": "Assume solid background. Focus on depth, edge cases, and mastery-level practice. Use 4 phases.",
}


def roadmap_prompt(content: str, learner_level: str) -> str:
    return f"""You are an expert curriculum designer. Build a structured learning roadmap for a {learner_level} learner
from the study material below.

{LEVEL_GUIDANCE[learner_level]}
Each phase has 2-4 modules; each module has 2-5 lessons. Titles must be short and specific.

Return ONLY valid JSON in this exact format (no markdown, no preamble):
{{
  "title": "Roadmap title",
  "overview": "2-3 sentence overview",
  "mainTopic": "Main topic",
  "subTopics": ["Sub topic"],
  "learningOutcomes": ["Outcome"],
  "estimatedDuration": "e.g. 4 weeks",
  "phases": [
    {{
      "phaseName": "Phase title",
      "description": "What this phase covers",
      "duration": "e.g. 1 week",
      "learningObjectives": ["Objective"],
      "phaseTopics": ["Topic"],
      "modules": [
        {{
          "title": "Module title",
          "description": "Module description",
          "keyTerms": ["Term"],
          "lessons": [
            {{
              "title": "Lesson title",
              "description": "Lesson description",
              "duration": "e.g. 30 minutes",
              "keyPoints": ["Point"],
              "examples": ["Example"]
            }}
          ]
        }}
      ]
    }}
  ]
}}

Study material:
\"\"\"
{content}
\"\"\"
"""


def condense_prompt(chunk: str, index: int, total: int) -> str:
    return f"""You are preparing study notes. This is part {index} of {total} of a longer document.
Condense it into dense notes that keep every definition, key fact, formula, example and heading.
Write plain text, no preamble.

Part {index}:
\"\"\"
{chunk}
\"\"\"
"""


def roadmap_quiz_focus(topics: List[str]) -> str:
    return ", ".join(topic for topic in topics if topic)

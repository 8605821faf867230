"""Prompts for the LLM-backed explanation evaluator."""

EXPLAIN_IT_BACK = """<task>
A student wrote the code below and then explained it "as if teaching someone new to programming"
(Feynman technique). Judge how well the explanation shows real understanding of the code.
</task>

<code language="{language}">
{code}
</code>

<explanation>
{explanation}
</explanation>

<understanding_rubric>
excellent: explains what, how AND why; names the key concepts; no errors
good: correct overall picture, minor gaps in the "why"
partial: describes some parts correctly, misses or misstates important ones
needs_work: restates the code line by line, vague, or wrong
</understanding_rubric>

<constraints>
- Judge the explanation, not the code quality
- Feedback is addressed to the student, encouraging, Markdown allowed, max 120 words
- At most 3 follow-up questions
</constraints>

Return ONLY valid JSON:
{{
  "passed": bool,
  "understanding": "excellent" | "good" | "partial" | "needs_work",
  "feedback": string,
  "conceptsCovered": [string],
  "conceptsMissed": [string],
  "followUpQuestions": [string]
}}"""

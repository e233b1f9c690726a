"""
Static HTML export of a quiz (flashcards, MCQs with answers, open questions)
"""
import re

from jinja2 import Environment, select_autoescape

from quizportal.models import Quiz

_env = Environment(autoescape=select_autoescape(default=True, default_for_string=True))

QUIZ_EXPORT_TEMPLATE = _env.from_string("""<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <title>{{ quiz.title }}</title>
  <style>
    * { margin: 0; padding: 0; box-sizing: border-box; }
    body { font-family: Arial, sans-serif; padding: 40px; color: #1a1a1a; line-height: 1.6; }
    h1 { font-size: 28px; margin-bottom: 8px; color: #1e40af; }
    h2 { font-size: 20px; margin: 32px 0 16px; padding-bottom: 8px; border-bottom: 2px solid #3b82f6; color: #1e40af; }
    .subtitle { color: #6b7280; font-size: 14px; margin-bottom: 32px; }
    table { width: 100%; border-collapse: collapse; margin-bottom: 24px; }
    th, td { border: 1px solid #d1d5db; padding: 10px 14px; text-align: left; font-size: 14px; }
    th { background: #eff6ff; font-weight: 600; color: #1e40af; }
    .mcq, .oq { margin-bottom: 24px; page-break-inside: avoid; }
    .mcq-q, .oq-q { font-weight: 600; margin-bottom: 8px; font-size: 15px; }
    .mcq-opt { margin-left: 20px; margin-bottom: 4px; font-size: 14px; }
    .mcq-opt.correct { color: #059669; font-weight: 600; }
    .oq-a { background: #f0f9ff; padding: 12px; border-radius: 6px; border-left: 3px solid #3b82f6; font-size: 14px; }
    @media print { body { padding: 20px; } }
  </style>
</head>
<body>
  <h1>{{ quiz.title }}</h1>
  <p class="subtitle">{{ quiz.file_name }} &middot; {{ quiz.created_at.strftime("%Y-%m-%d") }}</p>
{% if quiz.flashcards %}
  <h2>Flashcards ({{ quiz.flashcards|length }})</h2>
  <table>
    <thead><tr><th>#</th><th>Term</th><th>Definition</th></tr></thead>
    <tbody>
{% for card in quiz.flashcards %}
      <tr><td>{{ loop.index }}</td><td>{{ card.term }}</td><td>{{ card.definition }}</td></tr>
{% endfor %}
    </tbody>
  </table>
{% endif %}
{% if quiz.mcqs %}
  <h2>Multiple Choice ({{ quiz.mcqs|length }})</h2>
{% for mcq in quiz.mcqs %}
  <div class="mcq">
    <div class="mcq-q">{{ loop.index }}. {{ mcq.question }}</div>
{% for letter, text in [("A", mcq.option_a), ("B", mcq.option_b), ("C", mcq.option_c), ("D", mcq.option_d)] %}
    <div class="mcq-opt{% if mcq.correct_option == letter %} correct{% endif %}">{{ letter }}) {{ text }}{% if mcq.correct_option == letter %} ✓{% endif %}</div>
{% endfor %}
  </div>
{% endfor %}
{% endif %}
{% if quiz.open_questions %}
  <h2>Open Questions ({{ quiz.open_questions|length }})</h2>
{% for oq in quiz.open_questions %}
  <div class="oq">
    <div class="oq-q">{{ loop.index }}. {{ oq.question }}</div>
    <div class="oq-a">{{ oq.model_answer }}</div>
  </div>
{% endfor %}
{% endif %}
</body>
</html>
""")


def render_quiz_html(quiz: Quiz) -> str:
    return QUIZ_EXPORT_TEMPLATE.render(quiz=quiz)


def export_file_name(title: str) -> str:
    return re.sub(r"[^a-zA-Z0-9]", "_", title) + ".html"

# backend/ai/stub.py
"""
Offline provider (AI_PROVIDER=stub). Produces the same shapes the real models
return so the whole interview flow works without API keys. Deterministic.
"""
from __future__ import annotations

import re
from typing import Any, Dict, List

KNOWN_SKILLS = [
    "python", "java", "javascript", "typescript", "go", "rust", "c++", "c#", "sql",
    "postgresql", "mysql", "mongodb", "redis", "react", "node.js", "django", "flask",
    "fastapi", "aws", "gcp", "azure", "docker", "kubernetes", "terraform", "linux",
    "git", "pandas", "numpy", "pytorch", "tensorflow", "spark", "kafka", "graphql",
]

_EMAIL_RE = re.compile(r"[\w.+-]+@[\w-]+\.[\w.-]+")
_PHONE_RE = re.compile(r"\+?\d[\d\s().-]{7,}\d")
_SECTION_RE = re.compile(r"^(experience|work experience|employment|professional experience)\s*:?$", re.I)
_END_SECTION_RE = re.compile(r"^(education|skills|projects|certifications|summary)\s*:?$", re.I)
_ROLE_RE = re.compile(
    r"^(?P<title>[^|@]+?)\s+(?:at|@|\||-|–)\s+(?P<company>[^()]+?)\s*(?:\((?P<duration>[^)]*)\))?$",
    re.I,
)


def _skills_in(text: str) -> List[str]:
    low = (text or "").lower()
    found = []
    for s in KNOWN_SKILLS:
        if re.search(r"(?<![\w+#.])" + re.escape(s) + r"(?![\w+#])", low):
            found.append(s)
    return found


def parse_resume(text: str) -> Dict[str, Any]:
    lines = [ln.strip() for ln in (text or "").splitlines() if ln.strip()]
    email = _EMAIL_RE.search(text or "")
    phone = _PHONE_RE.search(text or "")

    work: List[Dict[str, Any]] = []
    in_exp = False
    for ln in lines:
        if _SECTION_RE.match(ln):
            in_exp = True
            continue
        if _END_SECTION_RE.match(ln):
            in_exp = False
            continue
        if not in_exp:
            continue
        m = None if ln[0] in "-*•" else _ROLE_RE.match(ln)
        if m:
            work.append({
                "title": m.group("title").strip(),
                "company": m.group("company").strip(),
                "duration": (m.group("duration") or "").strip(),
                "description": "",
                "skills": [],
            })
        elif work:
            cur = work[-1]
            cur["description"] = (cur["description"] + " " + ln.lstrip("-*• ")).strip()
            cur["skills"] = _skills_in(cur["description"])

    return {
        "personalInfo": {
            "name": lines[0] if lines else "",
            "email": email.group(0) if email else "",
            "phone": phone.group(0).strip() if phone else None,
        },
        "workExperience": work,
        "education": [],
        "skills": _skills_in(text),
        "summary": None,
    }


def make_questions(work_experience: List[Dict[str, Any]], n: int) -> Dict[str, Any]:
    exps = work_experience or [{}]
    templates = [
        ("experience", "Walk me through your role as {title} at {company}. What was your biggest impact?"),
        ("technical", "Which technical decisions involving {skill} at {company} were the hardest, and how did you make them?"),
        ("behavioral", "Tell me about a time you disagreed with a teammate at {company}. How did you resolve it?"),
        ("situational", "If you had to rebuild the main system you worked on as {title} today, what would you change and why?"),
        ("experience", "Building on your time as {title}, where do you want to grow next in your career?"),
    ]
    questions = []
    for i in range(n):
        exp = exps[i % len(exps)]
        qtype, tpl = templates[i % len(templates)]
        skills = exp.get("skills") or ["your core stack"]
        questions.append({
            "questionText": tpl.format(
                title=exp.get("title") or "an engineer",
                company=exp.get("company") or "your last company",
                skill=skills[0],
            ),
            "questionType": qtype,
            "isRequired": True,
        })
    return {"questions": questions}


def score_answer(question: str, response: str, skills: List[str]) -> Dict[str, Any]:
    t = (response or "").strip()
    words = t.split()
    length = len(words)
    low = t.lower()

    clarity = min(10, max(3, 3 + length // 25))
    completeness = min(10, 4
        + (2 if length >= 60 else 0)
        + (1 if "because" in low else 0)
        + (1 if "for example" in low or "for instance" in low else 0)
        + (1 if "result" in low else 0)
    )
    q_terms = {w for w in re.findall(r"[a-z]{4,}", (question or "").lower())}
    overlap = sum(1 for w in set(re.findall(r"[a-z]{4,}", low)) if w in q_terms)
    relevance = min(10, 4 + overlap)
    mentioned = [s for s in (skills or []) if s and s.lower() in low]
    technical = min(10, 4 + 2 * len(mentioned))
    overall = round((relevance + clarity + completeness + technical) / 4, 1)

    strengths, improvements = [], []
    if length >= 60:
        strengths.append("Detailed answer")
    else:
        improvements.append("Expand the answer with more detail")
    if mentioned:
        strengths.append("References relevant skills: " + ", ".join(mentioned[:3]))
    else:
        improvements.append("Tie the answer to specific skills from your experience")
    if "for example" not in low and "for instance" not in low:
        improvements.append("Add a concrete example")

    return {
        "relevance": relevance,
        "clarity": clarity,
        "completeness": completeness,
        "technicalAccuracy": technical,
        "overallScore": overall,
        "strengths": strengths,
        "improvements": improvements,
        "detailedFeedback": "Auto-scored heuristically (offline provider).",
    }


def summarize(items: List[Dict[str, Any]], profile: Dict[str, Any]) -> Dict[str, Any]:
    scores = [float(it["evaluation"].get("overallScore", 0)) for it in items]
    avg = round(sum(scores) / len(scores), 1) if scores else 0.0

    def _collect(key: str) -> List[str]:
        seen: List[str] = []
        for it in items:
            for s in it["evaluation"].get(key) or []:
                if s not in seen:
                    seen.append(s)
        return seen[:3]

    name = ((profile or {}).get("personalInfo") or {}).get("name") or "The candidate"
    return {
        "overallScore": avg,
        "feedback": f"{name} answered {len(items)} questions with an average score of {avg}/10.",
        "strengths": _collect("strengths") or ["Completed every question"],
        "improvements": _collect("improvements") or ["Keep practising with new questions"],
    }

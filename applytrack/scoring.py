"""
Resume parsing and job relevance scoring for ApplyTrack.

A keyword heuristic: skills found in the resume are matched against the
job description, and job description words are matched against the
resume's experience and education lines.
"""

import math
import re
from dataclasses import dataclass, field
from typing import List

from rich.console import Console

console = Console()

DEFAULT_SCORE = 50
SKILL_SCORE_CAP = 60
SKILL_SCORE_WEIGHT = 70
KEYWORD_SCORE_CAP = 30
KEYWORD_HIT_POINTS = 2
SKILL_BONUS_THRESHOLD = 3
SKILL_BONUS = 10

COMMON_SKILLS = [
    # Programming languages
    'javascript', 'typescript', 'python', 'java', 'c++', 'c#', 'ruby', 'go', 'php', 'swift', 'kotlin',

    # Frontend
    'react', 'angular', 'vue', 'html', 'css', 'sass', 'less', 'tailwind', 'bootstrap', 'material-ui',
    'redux', 'webpack', 'vite', 'next.js', 'svelte',

    # Backend
    'node.js', 'express', 'django', 'flask', 'spring', 'asp.net', 'laravel', 'ruby on rails',

    # Database
    'sql', 'mysql', 'postgresql', 'mongodb', 'firebase', 'supabase', 'dynamodb', 'redis', 'oracle',

    # Cloud & DevOps
    'aws', 'azure', 'gcp', 'docker', 'kubernetes', 'jenkins', 'ci/cd', 'terraform', 'ansible',

    # Mobile
    'android', 'ios', 'react native', 'flutter', 'xamarin', 'ionic',

    # AI/ML
    'machine learning', 'deep learning', 'tensorflow', 'pytorch', 'scikit-learn', 'nlp', 'computer vision',

    # Software practices
    'git', 'github', 'agile', 'scrum', 'jira', 'kanban', 'tdd', 'bdd', 'rest api', 'graphql',

    # Soft skills
    'leadership', 'communication', 'teamwork', 'problem solving', 'critical thinking', 'time management',
    'project management', 'adaptability', 'creativity', 'collaboration', 'presentation',
]

# (cue words, extra skills) - extras only count when a cue word is present
DOMAIN_SKILLS = [
    (('software', 'developer', 'engineer'),
     ['algorithms', 'data structures', 'object-oriented', 'functional programming',
      'microservices', 'system design']),
    (('finance', 'business', 'analyst'),
     ['excel', 'financial analysis', 'tableau', 'power bi', 'forecasting', 'budgeting', 'accounting']),
    (('marketing', 'seo', 'content'),
     ['seo', 'sem', 'social media', 'content strategy', 'analytics', 'copywriting', 'brand management']),
]

JOB_TITLE_KEYWORDS = [
    'Engineer', 'Developer', 'Manager', 'Director', 'Specialist', 'Analyst',
    'Designer', 'Architect', 'Consultant', 'Intern', 'Lead',
]

COMPANY_INDICATORS = ['Inc', 'LLC', 'Ltd', 'Corporation', 'Company', 'GmbH']

EDUCATION_KEYWORDS = [
    'Bachelor', 'Master', 'PhD', 'BS', 'MS', 'BA', 'MA', 'B.S.', 'M.S.',
    'University', 'College', 'School', 'Institute', 'Degree', 'Education',
    'Major', 'Minor', 'Graduated', 'GPA',
]

SUMMARY_FIELDS = [
    'Computer Science', 'Engineering', 'Business', 'Marketing', 'Finance',
    'Data Science', 'Design', 'Healthcare', 'Education', 'Psychology',
]

STOPWORDS = {'and', 'the', 'this', 'that', 'with', 'from', 'have'}

BULLETS = ('•', '-', '*')
MAX_BULLET_POINTS = 10

EXPERIENCE_HEADER_RE = re.compile(r'experience|work|employment|history', re.IGNORECASE)


@dataclass
class ParsedResume:
    skills: List[str] = field(default_factory=list)
    experience: List[str] = field(default_factory=list)
    education: List[str] = field(default_factory=list)
    summary: str = ""


@dataclass
class RelevanceBreakdown:
    """How a relevance score was put together."""
    matching_skills: List[str] = field(default_factory=list)
    total_skills: int = 0
    skill_match_ratio: float = 0.0
    skill_score: float = 0.0
    keyword_hits: int = 0
    keyword_score: float = 0.0
    bonus: int = 0
    score: int = DEFAULT_SCORE


def _word_pattern(term: str, flags: int = re.IGNORECASE) -> re.Pattern:
    # Lookarounds instead of \b so terms like "c++" and "node.js" still match
    return re.compile(rf'(?<!\w){re.escape(term)}(?!\w)', flags)


def _contains_word(text: str, term: str, flags: int = re.IGNORECASE) -> bool:
    return bool(_word_pattern(term, flags).search(text))


def _is_bullet(line: str) -> bool:
    return line.strip().startswith(BULLETS)


def extract_skills(text: str) -> List[str]:
    """Find known skills in the text, unlocking domain skills by cue words."""
    found = [skill for skill in COMMON_SKILLS if _contains_word(text, skill)]

    text_lower = text.lower()
    for cues, extras in DOMAIN_SKILLS:
        if not any(cue in text_lower for cue in cues):
            continue
        for skill in extras:
            if skill not in found and _contains_word(text, skill):
                found.append(skill)

    return found


def extract_experience(text: str) -> List[str]:
    """Collect section headers, job title lines, company lines and bullet points."""
    lines = text.split('\n')

    section_headers = [
        line for line in lines
        if EXPERIENCE_HEADER_RE.search(line)
        and len(line) < 30
        and re.fullmatch(r'[A-Z\s]+', line.strip())
    ]

    def no_bullet_markers(line: str) -> bool:
        return '•' not in line and '*' not in line and not line.strip().startswith('-')

    job_lines = [
        line for line in lines
        if any(_contains_word(line, keyword) for keyword in JOB_TITLE_KEYWORDS)
        and len(line) < 100
        and no_bullet_markers(line)
    ]

    company_lines = [
        line for line in lines
        if (any(_contains_word(line, indicator, 0) for indicator in COMPANY_INDICATORS)
            or re.fullmatch(r'[A-Za-z\s,.]+', line.strip()))
        and len(line) < 50
        and no_bullet_markers(line)
    ]

    bullet_points = [
        line for line in lines
        if _is_bullet(line) and 10 < len(line) < 200
    ]

    return section_headers + job_lines + company_lines + bullet_points[:MAX_BULLET_POINTS]


def extract_education(text: str) -> List[str]:
    """Lines mentioning degrees, schools or grades."""
    return [
        line for line in text.split('\n')
        if any(_contains_word(line, keyword) for keyword in EDUCATION_KEYWORDS)
        and len(line) < 150
    ]


def generate_summary(text: str, skills: List[str]) -> str:
    word_count = len(text.split())
    top_skills = ', '.join(skills[:5])

    text_lower = text.lower()
    detected = [f for f in SUMMARY_FIELDS if f.lower() in text_lower]
    field_info = f" in {detected[0]}" if detected else ""

    return (f"Resume contains approximately {word_count} words{field_info} "
            f"and highlights expertise in {top_skills or 'various technologies'}.")


def parse_resume_text(text: str) -> ParsedResume:
    """Extract skills, experience, education and a one-line summary from resume text."""
    if not text or not isinstance(text, str):
        return ParsedResume(summary="Invalid resume text provided.")

    skills = extract_skills(text)
    return ParsedResume(
        skills=skills,
        experience=extract_experience(text),
        education=extract_education(text),
        summary=generate_summary(text, skills),
    )


def job_keywords(job_description: str) -> List[str]:
    """Lower-case words longer than three characters, minus stopwords."""
    words = re.sub(r'[^\w\s]', '', job_description.lower()).split()
    return [word for word in words if len(word) > 3 and word not in STOPWORDS]


def count_keyword_hits(items: List[str], keywords: List[str]) -> int:
    """Count (item, keyword) pairs where a word of the item and the keyword overlap."""
    hits = 0
    for item in items:
        item_words = item.lower().split()
        for keyword in keywords:
            if any(keyword in word or word in keyword for word in item_words):
                hits += 1
    return hits


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def score_breakdown(resume_text: str, job_description: str) -> RelevanceBreakdown:
    """Compute the relevance score and every part that went into it."""
    if not resume_text or not resume_text.strip() or not job_description or not job_description.strip():
        return RelevanceBreakdown()

    parsed = parse_resume_text(resume_text)

    job_lower = job_description.lower()
    matching = [skill for skill in parsed.skills if skill.lower() in job_lower]
    total_skills = len(parsed.skills)
    ratio = len(matching) / total_skills if total_skills else 0.0

    skill_score = min(SKILL_SCORE_CAP, ratio * SKILL_SCORE_WEIGHT)

    hits = count_keyword_hits(parsed.experience + parsed.education, job_keywords(job_description))
    keyword_score = min(KEYWORD_SCORE_CAP, hits * KEYWORD_HIT_POINTS)

    bonus = SKILL_BONUS if len(matching) > SKILL_BONUS_THRESHOLD else 0
    total = skill_score + keyword_score + bonus

    return RelevanceBreakdown(
        matching_skills=matching,
        total_skills=total_skills,
        skill_match_ratio=ratio,
        skill_score=skill_score,
        keyword_hits=hits,
        keyword_score=keyword_score,
        bonus=bonus,
        score=_round_half_up(min(100, max(0, total))),
    )


def get_relevance_score(resume_text: str, job_description: str) -> int:
    """
    Score how well a resume fits a job description.

    Returns:
        Integer in [0, 100]; 50 when either text is empty or scoring fails
    """
    try:
        return score_breakdown(resume_text, job_description).score
    except Exception as e:
        console.print(f"[yellow]Warning: Error calculating relevance score: {e}[/yellow]")
        return DEFAULT_SCORE

# -*- coding: utf-8 -*-
"""
Preference Aggregator
=====================
답변 목록을 UserProfile로 집계한다.

    preference(cat) = Σ(value × weight) / Σ(weight)      [cat의 답변만, 없으면 0]
    priorities      = 태그별 Σ(weight) 상위 5개 (동점은 먼저 등장한 태그 우선)
    category_weights: priority 메타 질문의 답변으로 고정 프리셋 선택

카테고리 가중치 프리셋 (baseline 0.5, 선택 토큰에 따라 덮어씀):
    housing    → housing 2.0, price 2.0  (월세는 비용 항목이므로 price도 함께)
    transport  → transport 2.0
    commercial → commercial 2.0
    culture    → culture 2.0
    price      → price 3.0, housing 2.5
    none       → 전부 1.0 (균형)
    priority 답변 없음 → 전부 1.0
"""
import logging
from dataclasses import replace
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from src.catalog import QuestionCatalog
from src.errors import SessionNotFound, UnknownOption, UnknownQuestion
from src.models import CATEGORIES, Answer, Question, UserProfile, balanced_weights
from src.session import SessionState, SessionStore

logger = logging.getLogger(__name__)

MAX_PRIORITIES = 5

PRIORITY_BASELINE = 0.5
BALANCED_TOKEN = "none"

PRIORITY_PRESETS: Dict[str, Dict[str, float]] = {
    "housing": {"housing": 2.0, "price": 2.0},
    "transport": {"transport": 2.0},
    "commercial": {"commercial": 2.0},
    "culture": {"culture": 2.0},
    "price": {"price": 3.0, "housing": 2.5},
}


def priority_token(option_id: str) -> str:
    """'priority_01_price' → 'price'"""
    return option_id.rsplit("_", 1)[-1]


def derive_category_weights(
    token: Optional[str],
    presets: Mapping[str, Mapping[str, float]] = PRIORITY_PRESETS,
) -> Dict[str, float]:
    if token is None or token == BALANCED_TOKEN:
        return balanced_weights()
    weights = {c: PRIORITY_BASELINE for c in CATEGORIES}
    weights.update(presets.get(token, {}))
    return weights


def compute_profile(
    answers: Iterable[Answer],
    questions: QuestionCatalog,
    presets: Mapping[str, Mapping[str, float]] = PRIORITY_PRESETS,
) -> UserProfile:
    """
    Fold retained answers into a UserProfile.

    Answers whose question or option is not in the catalog are skipped for
    every aggregate but stay in the `answers` snapshot.
    """
    snapshot: Tuple[Answer, ...] = tuple(answers)

    numerators = {c: 0.0 for c in CATEGORIES}
    denominators = {c: 0.0 for c in CATEGORIES}
    tag_tally: Dict[str, float] = {}

    designated = questions.priority_question
    priority_answer: Optional[Answer] = None

    for answer in snapshot:
        question = questions.get(answer.question_id)
        if question is None:
            continue
        if question.is_priority:
            if designated is not None and question.id == designated.id:
                priority_answer = answer
            continue

        option = question.find_option(answer.selected_option_id)
        if option is None:
            continue

        numerators[question.category] += option.value * question.weight
        denominators[question.category] += question.weight
        for tag in option.tags:
            tag_tally[tag] = tag_tally.get(tag, 0.0) + question.weight

    preferences = {
        c: (numerators[c] / denominators[c]) if denominators[c] > 0 else 0.0
        for c in CATEGORIES
    }

    # sorted()는 stable → 동점이면 dict 삽입 순서(최초 등장 순) 유지
    ranked_tags = sorted(tag_tally.items(), key=lambda kv: kv[1], reverse=True)
    priorities = tuple(tag for tag, _ in ranked_tags[:MAX_PRIORITIES])

    token = priority_token(priority_answer.selected_option_id) if priority_answer else None
    category_weights = derive_category_weights(token, presets)

    return UserProfile(
        preferences=preferences,
        category_weights=category_weights,
        priorities=priorities,
        answers=snapshot,
    )


class DiagnosticService:
    """
    세션 단위 진단 흐름.

    submit_answer()에서 질문/선택지 존재 여부를 검증하고, 프로필은
    get_profile() 첫 호출 시 계산해 세션에 캐시한다. 새 답변이 들어오면
    캐시를 비우고 다음 조회 때 다시 계산한다.
    """

    def __init__(
        self,
        questions: QuestionCatalog,
        store: SessionStore,
        presets: Mapping[str, Mapping[str, float]] = PRIORITY_PRESETS,
    ):
        self.questions = questions
        self.store = store
        self.presets = presets

    def get_questions(self) -> Tuple[Question, ...]:
        return self.questions.questions

    def get_questions_by_category(self, category: str) -> List[Question]:
        return self.questions.by_category(category)

    def _validate(self, question_id: str, option_id: str) -> None:
        question = self.questions.get(question_id)
        if question is None:
            raise UnknownQuestion(question_id)
        if question.find_option(option_id) is None:
            raise UnknownOption(question_id, option_id)

    def submit_answer(self, session_id: str, question_id: str, option_id: str) -> Tuple[Answer, ...]:
        self._validate(question_id, option_id)
        answer = Answer(question_id=question_id, selected_option_id=option_id)

        with self.store.lock(session_id):
            state = self.store.get(session_id) or SessionState()
            answers = tuple(a for a in state.answers if a.question_id != question_id) + (answer,)
            self.store.put(session_id, SessionState(answers=answers, profile=None))

        logger.debug("session %s: %s -> %s (%d answers)", session_id, question_id, option_id, len(answers))
        return answers

    def _require_state(self, session_id: str) -> SessionState:
        state = self.store.get(session_id)
        if state is None:
            raise SessionNotFound(session_id)
        return state

    def get_answers(self, session_id: str) -> Tuple[Answer, ...]:
        return self._require_state(session_id).answers

    def get_profile(self, session_id: str) -> UserProfile:
        # 없는 세션 id에는 세션 락을 잡지 않는다
        self._require_state(session_id)
        with self.store.lock(session_id):
            state = self._require_state(session_id)
            if state.profile is not None:
                return state.profile
            profile = compute_profile(state.answers, self.questions, self.presets)
            if not self.store.update(session_id, replace(state, profile=profile)):
                # 계산 도중 만료/LRU 제거된 세션은 되살리지 않는다
                raise SessionNotFound(session_id)
            return profile

    def is_complete(self, session_id: str) -> bool:
        state = self.store.get(session_id)
        if state is None:
            return False
        answered = {a.question_id for a in state.answers}
        return all(q.id in answered for q in self.questions)

    def clear_session(self, session_id: str) -> None:
        # 진행 중인 get_profile/submit_answer가 끝난 뒤 삭제
        with self.store.lock(session_id):
            self.store.delete(session_id)

    def session_exists(self, session_id: str) -> bool:
        return self.store.exists(session_id)

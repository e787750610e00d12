# -*- coding: utf-8 -*-
import asyncio
import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query

from api.dependencies import registry
from api.schemas import (
    AnswerRequest, AnswerResponse, ProfileModel, QuestionItem,
    SessionAnswersResponse, VALID_QUESTION_CATEGORY,
)
from api.serializers import answer_items, profile_model, question_item
from src.errors import SessionNotFound, UnknownOption, UnknownQuestion

router = APIRouter()


@router.get(
    "/questions",
    response_model=List[QuestionItem],
    summary="진단 질문 목록 조회",
    description="라이프스타일 진단 질문과 선택지를 카탈로그 순서대로 반환합니다. "
    "category를 지정하면 해당 카테고리의 질문만 반환합니다.",
    response_description="질문 목록 (선택지, 값, 태그 포함)",
)
async def get_questions(
    category: Optional[VALID_QUESTION_CATEGORY] = Query(None, description="카테고리 필터 (예: price)"),
):
    service = registry.get_diagnostic()
    if category is None:
        questions = service.get_questions()
    else:
        questions = service.get_questions_by_category(category)
    return [question_item(q) for q in questions]


@router.post(
    "/answers",
    response_model=AnswerResponse,
    summary="진단 답변 제출",
    description="질문 하나에 대한 답변을 세션에 기록합니다. 같은 질문에 다시 답하면 "
    "이전 답변을 대체합니다. session_id가 없으면 새 세션을 발급합니다. "
    "모든 질문에 답하면 계산된 프로필을 함께 반환합니다.",
    response_description="세션 ID, 현재 답변 목록, 완료 여부, (완료 시) 프로필",
)
async def submit_answer(req: AnswerRequest):
    service = registry.get_diagnostic()
    session_id = req.session_id or str(uuid.uuid4())

    try:
        answers = await asyncio.to_thread(
            service.submit_answer, session_id, req.question_id, req.selected_option_id
        )
    except (UnknownQuestion, UnknownOption) as e:
        raise HTTPException(status_code=400, detail=str(e))

    is_complete = service.is_complete(session_id)
    profile = None
    if is_complete:
        try:
            profile = profile_model(await asyncio.to_thread(service.get_profile, session_id))
        except SessionNotFound:
            # 제출 직후 만료/제거된 세션
            raise HTTPException(status_code=404, detail=f"세션을 찾을 수 없습니다: {session_id}")

    return AnswerResponse(
        session_id=session_id,
        answers=answer_items(answers),
        is_complete=is_complete,
        profile=profile,
    )


@router.get(
    "/sessions/{session_id}/answers",
    response_model=SessionAnswersResponse,
    summary="세션 답변 조회",
    description="세션에 기록된 답변을 제출 순서대로 반환합니다.",
    response_description="답변 목록과 완료 여부",
)
async def get_session_answers(session_id: str):
    service = registry.get_diagnostic()
    try:
        answers = service.get_answers(session_id)
    except SessionNotFound:
        raise HTTPException(status_code=404, detail=f"세션을 찾을 수 없습니다: {session_id}")
    return SessionAnswersResponse(
        session_id=session_id,
        answers=answer_items(answers),
        is_complete=service.is_complete(session_id),
    )


@router.get(
    "/sessions/{session_id}/profile",
    response_model=ProfileModel,
    summary="사용자 프로필 조회",
    description="세션의 답변을 집계한 프로필(카테고리 선호도, 카테고리 가중치, 우선 태그)을 반환합니다. "
    "진단이 끝나지 않았어도 현재까지의 답변으로 계산합니다.",
    response_description="preferences, category_weights, priorities, answers",
)
async def get_session_profile(session_id: str):
    service = registry.get_diagnostic()
    try:
        profile = await asyncio.to_thread(service.get_profile, session_id)
    except SessionNotFound:
        raise HTTPException(status_code=404, detail=f"세션을 찾을 수 없습니다: {session_id}")
    except Exception as e:
        logging.error(f"Profile computation failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="프로필 계산 중 오류가 발생했습니다")
    return profile_model(profile)


@router.delete(
    "/sessions/{session_id}",
    summary="세션 삭제",
    description="세션의 답변과 캐시된 프로필을 삭제합니다. 없는 세션이어도 성공으로 처리합니다.",
    response_description="삭제 결과",
)
async def delete_session(session_id: str):
    registry.get_diagnostic().clear_session(session_id)
    return {"status": "ok", "session_id": session_id}

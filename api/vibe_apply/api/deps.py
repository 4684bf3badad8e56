from fastapi import Depends

from vibe_apply.services.applications import ApplicationService
from vibe_apply.services.notes import COMMENT, MEMO, NoteService
from vibe_apply.services.recommendations import RecommendationService
from vibe_apply.services.review_queue import ReviewQueueService
from vibe_apply.services.store import get_record_store
from vibe_apply.services.users import UserService


def get_application_service(store=Depends(get_record_store)) -> ApplicationService:
    return ApplicationService(store)


def get_recommendation_service(store=Depends(get_record_store)) -> RecommendationService:
    return RecommendationService(store)


def get_review_queue_service(store=Depends(get_record_store)) -> ReviewQueueService:
    return ReviewQueueService(store)


def get_memo_service(store=Depends(get_record_store)) -> NoteService:
    return NoteService(store, MEMO)


def get_comment_service(store=Depends(get_record_store)) -> NoteService:
    return NoteService(store, COMMENT)


def get_user_service(store=Depends(get_record_store)) -> UserService:
    return UserService(store)

"""
ESAS questionnaire API Endpoints
"""

from fastapi import APIRouter, Depends

from app.schemas.screening import QuestionnaireResponse, QuestionOut
from app.services.esas import RecommendationTable, recommendation_table_dependency
from app.services.esas.symptoms import questionnaire

router = APIRouter(prefix="/esas", tags=["ESAS"])


@router.get("/questions", response_model=QuestionnaireResponse)
async def get_questions(table: RecommendationTable = Depends(recommendation_table_dependency)):
    """
    The nine ESAS questions in form order, with the score range
    """
    return QuestionnaireResponse(
        questions=[QuestionOut(**question) for question in questionnaire()],
        recommendation_table_version=table.version,
    )

from fastapi import FastAPI
from pydantic import BaseModel
from reading_translator.services.reading_pipeline import ReadingPipeline
from reading_translator.services.usage_tracker import tracker_from_settings
from reading_translator.models.annotated_result import AnnotatedResult
from reading_translator.logconf import logger

app = FastAPI()

from typing import Optional

pipeline: Optional[ReadingPipeline] = None


def get_pipeline() -> ReadingPipeline:
    global pipeline
    if pipeline is None:
        pipeline = ReadingPipeline(usage_tracker=tracker_from_settings())
    return pipeline


class ProcessRequest(BaseModel):
    text: str
    target_language: str = "en"
    source_language: Optional[str] = None

@app.post("/process/")
async def process_endpoint(request: ProcessRequest):
    try:
        outcome = await get_pipeline().process(
            request.text, request.target_language, request.source_language
        )
    except Exception as e:
        logger.error(f"An error occurred: {e}")
        return {"error": f"An error occurred: {str(e)}", "kind": "internal-error"}

    if isinstance(outcome, AnnotatedResult):
        return outcome.to_dict()
    logger.info(f"Request ended with {outcome.kind}: {outcome}")
    return outcome.to_dict()

@app.get("/")
async def root():
    return {"message": "Reading Translator API is running."}

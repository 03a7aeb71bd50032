"""
Runs the pipeline over every row of a CSV file.
Rows are processed in parallel with asyncio.gather, bounded by a semaphore.
"""

from __future__ import annotations

import asyncio, time
from pathlib import Path
import pandas as pd
from reading_translator.settings import settings
from reading_translator.logconf import logger
from reading_translator.models.annotated_result import AnnotatedResult
from reading_translator.services.reading_pipeline import ReadingPipeline
from reading_translator.services.usage_tracker import tracker_from_settings
from reading_translator.utils.csv_utils import read_csv, write_csv

RESULT_COLUMNS = {
    "annotated_text":    "",
    "translated_text":   "",
    "language_code":     "",
    "accuracy_score":    "",
    "correction_status": "",
    "error":             "",
}


class BatchTranslator:
    def __init__(
        self,
        pipeline: ReadingPipeline | None = None,
        text_col: str | None = None,
        source_col: str | None = None,
        target_language: str | None = None,
    ) -> None:
        self.pipeline = pipeline or ReadingPipeline(usage_tracker=tracker_from_settings())
        self.text_col = text_col or settings.default_text_col
        self.source_col = source_col or settings.default_source_col
        self.target_language = target_language or settings.default_target_language
        self.sem = asyncio.Semaphore(settings.max_concurrency)

    async def _process_row(self, row_idx, row, df: pd.DataFrame) -> None:
        """
        One row = one pipeline invocation, guarded by the semaphore.
        """
        source_hint = row.get(self.source_col, "") or None
        async with self.sem:
            try:
                outcome = await self.pipeline.process(
                    row[self.text_col], self.target_language, source_hint
                )
            except Exception as e:
                logger.error("Row %s failed: %s", row_idx, e, exc_info=True)
                df.at[row_idx, "error"] = f"unexpected: {e}"
                return

        if isinstance(outcome, AnnotatedResult):
            df.at[row_idx, "annotated_text"]    = outcome.annotated_text
            df.at[row_idx, "translated_text"]   = outcome.translated_text
            df.at[row_idx, "language_code"]     = outcome.language_code
            df.at[row_idx, "accuracy_score"]    = str(outcome.validation.accuracy_score if outcome.validation else "")
            df.at[row_idx, "correction_status"] = outcome.correction_status.value
        else:
            df.at[row_idx, "error"] = f"{outcome.kind}: {outcome}"

    @staticmethod
    def _done(df: pd.DataFrame) -> int:
        return int(((df["correction_status"] != "") | (df["error"] != "")).sum())

    async def _save_loop(self, df: pd.DataFrame, out: Path) -> None:
        """
        Every `batch_size` rows or 10 s (whichever first) we save to disk.
        """
        last_save, processed = time.time(), 0
        while True:
            await asyncio.sleep(1)
            new_processed = self._done(df)
            if new_processed - processed >= settings.batch_size or time.time() - last_save > 10:
                await write_csv(df, out)
                processed, last_save = new_processed, time.time()
            if new_processed == len(df):
                await write_csv(df, out)   # final flush
                return

    async def translate(self, input_path: str | Path, output_path: str | Path) -> pd.DataFrame:
        df = read_csv(input_path)
        if self.text_col not in df.columns:
            raise KeyError(f"Column '{self.text_col}' not found in {input_path}")

        # ensure all result columns are present
        for col, default in RESULT_COLUMNS.items():
            df[col] = default

        tasks = [
            self._process_row(idx, df.loc[idx].copy(), df)
            for idx in df.index
        ]

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        saver = asyncio.create_task(self._save_loop(df, output_path))
        await asyncio.gather(*tasks)
        await saver
        logger.info("Batch finished (%s → %s)", input_path, output_path)
        return df

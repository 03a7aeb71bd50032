import asyncio, argparse, json, sys
from pathlib import Path
from reading_translator.services.batch_translator import BatchTranslator
from reading_translator.services.reading_pipeline import ReadingPipeline
from reading_translator.services.usage_tracker import tracker_from_settings
from reading_translator.models.annotated_result import AnnotatedResult
from reading_translator.logconf import logger

def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Translate text and annotate its pronunciation using an LLM."
    )
    parser.add_argument("text", nargs="?", help="Text to translate (omit when using --input)")
    parser.add_argument("-t", "--target", help="Target language code, e.g. en")
    parser.add_argument("-s", "--source", help="Force the source language instead of detecting it")
    parser.add_argument("-i", "--input", help="CSV file to translate row by row")
    parser.add_argument("-o", "--output", default="data/translated.csv")
    parser.add_argument("--text-col", help="Name of the text column")
    parser.add_argument("--source-col", help="Name of the source language column")
    args = parser.parse_args(argv)

    if not args.text and not args.input:
        parser.error("give a TEXT argument or --input CSV")

    try:
        if args.input:
            translator = BatchTranslator(
                text_col=args.text_col,
                source_col=args.source_col,
                target_language=args.target,
            )
            asyncio.run(translator.translate(Path(args.input), Path(args.output)))
            return 0

        pipeline = ReadingPipeline(usage_tracker=tracker_from_settings())
        outcome = asyncio.run(pipeline.process(args.text, args.target, args.source))
    except (FileNotFoundError, KeyError) as e:
        logger.error("Cannot translate %s: %s", args.input, e)
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 130

    print(json.dumps(outcome.to_dict(), ensure_ascii=False, indent=2))
    return 0 if isinstance(outcome, AnnotatedResult) else 1

if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))

import asyncio
import json
from pathlib import Path
from typing import List, Optional

import typer
from typing_extensions import Annotated

from intent_router.corpus.bootstrap import CorpusBootstrapper
from intent_router.corpus.store import create_store
from intent_router.intents.catalog import IntentDefinition, get_all_definitions, load_definitions
from intent_router.routing.router import IntentRouter
from intent_router.types.types import IntentRouterError
from intent_router.utils.config import ConfigManager
from intent_router.utils.logging_config import setup_logging
from intent_router.utils.schema import IntentRouterConfig

app = typer.Typer(help="Embedding-based intent routing with language-model fallback.")


def _load_settings() -> IntentRouterConfig:
    try:
        settings = ConfigManager().settings()
    except IntentRouterError as e:
        print(f"Configuration error: {e.message}")
        raise typer.Exit(code=2)
    setup_logging(
        level=settings.logging.level,
        log_file=settings.logging.file,
        json_format=settings.logging.json_format,
    )
    return settings


def _build_router(settings: IntentRouterConfig) -> IntentRouter:
    try:
        return IntentRouter.from_settings(settings)
    except IntentRouterError as e:
        print(f"Configuration error: {e.message}")
        raise typer.Exit(code=2)


@app.command("setup-intents")
def setup_intents(
    definitions: Annotated[
        Optional[Path],
        typer.Option(help="YAML or JSON file of intent definitions; defaults to the built-in catalog."),
    ] = None,
):
    """
    Rebuild the intent corpus from seed examples plus generated paraphrases.
    """
    settings = _load_settings()

    try:
        intent_definitions: List[IntentDefinition] = (
            load_definitions(definitions) if definitions else get_all_definitions()
        )
    except (OSError, IntentRouterError) as e:
        print(f"Cannot load intent definitions: {e}")
        raise typer.Exit(code=2)
    print(f"Bootstrapping {len(intent_definitions)} intents into {settings.corpus.path}")

    router = _build_router(settings)
    bootstrapper = CorpusBootstrapper(
        embedder=router.embedder,
        classifier=router.classifier,
        store=router.store,
        config=settings.bootstrap,
    )

    ok = asyncio.run(bootstrapper.bootstrap(intent_definitions))
    if not ok:
        print("Bootstrap failed; see log for details.")
        raise typer.Exit(code=1)

    stats = router.store.stats()
    print(f"Stored {stats['total_examples']} examples for {stats['unique_intents']} intents.")


@app.command()
def route(
    text: str,
    as_json: Annotated[bool, typer.Option("--json", help="Print the decision as JSON.")] = False,
):
    """
    Classify one message and print the intent, score and deciding tier.
    """
    settings = _load_settings()
    router = _build_router(settings)

    async def _run():
        decision = await router.route(text)
        await router.drain()
        return decision

    decision = asyncio.run(_run())

    if as_json:
        print(json.dumps({"intent": decision.intent, "score": decision.score, "tier": decision.tier}))
    else:
        print(f"intent: {decision.intent}")
        print(f"score:  {decision.score:.4f}")
        print(f"tier:   {decision.tier}")


@app.command()
def stats():
    """
    Print corpus diagnostics.
    """
    settings = _load_settings()
    store = create_store(settings.corpus, model=settings.embedding.model)
    asyncio.run(store.load())
    summary = store.stats()

    print(f"Corpus:          {settings.corpus.path}")
    print(f"Model:           {summary['model']}")
    print(f"Total examples:  {summary['total_examples']}")
    print(f"Unique intents:  {summary['unique_intents']}")
    print(f"Dimension:       {summary['dimension']}")
    print(
        f"Thresholds:      high={settings.router.high_threshold} "
        f"medium={settings.router.medium_threshold} minimum={settings.router.minimum_threshold}"
    )
    for intent, count in sorted(summary["intent_distribution"].items()):
        print(f"  {intent:<24}{count}")


if __name__ == "__main__":
    app()

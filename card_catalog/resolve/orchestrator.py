"""Multi-strategy card identification."""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from card_catalog.core.constants import (
    COMIC_LABELS,
    PRICE_SOURCES_ANALYZE,
    PRICE_SOURCES_COMICS,
    PRICE_SOURCES_SPORT,
    PRICE_SOURCES_TCG,
    TCG_KEYWORDS,
)
from card_catalog.core.types import (
    Card,
    ClassificationTags,
    IdentificationResult,
    ImageInput,
    ResolverStep,
    TransportFailure,
)
from card_catalog.match.score import ScoringWeights, pick
from card_catalog.resolve.assemble import assemble
from card_catalog.resolve.client import Endpoint, RecognitionClient, build_payload
from card_catalog.resolve.extract import count_collectibles, extract, object_category, ocr_keywords
from card_catalog.resolve.parse import first_record, record_succeeded
from card_catalog.utils.config import settings
from card_catalog.utils.log import LoggerMixin
from card_catalog.utils.validation import validate_image_input


@dataclass
class ResolutionState:
    """Everything learned during one identification attempt."""
    image: ImageInput
    keywords: List[str] = field(default_factory=list)
    ocr_response: Optional[Dict[str, Any]] = None
    multi_object: bool = False
    category: Optional[str] = None
    subcategory: Optional[str] = None
    card: Optional[Card] = None
    attempted: List[ResolverStep] = field(default_factory=list)

    @property
    def is_comic(self) -> bool:
        return self.category in COMIC_LABELS


def is_tcg_subcategory(subcategory: Optional[str], keywords: Sequence[str] = TCG_KEYWORDS) -> bool:
    if not subcategory:
        return False
    label = subcategory.lower()
    return any(k in label for k in keywords)


def next_step(step: ResolverStep, state: ResolutionState,
              tcg_keywords: Sequence[str] = TCG_KEYWORDS) -> ResolverStep:
    """Transition function; any step that produced a card ends the attempt."""
    if state.card is not None:
        return ResolverStep.DONE
    if step is ResolverStep.OCR_HINTS:
        return ResolverStep.DETECT
    if step is ResolverStep.DETECT:
        return ResolverStep.CLASSIFY
    if step is ResolverStep.CLASSIFY:
        if state.is_comic:
            return ResolverStep.IDENTIFY_COMIC
        if is_tcg_subcategory(state.subcategory, tcg_keywords):
            return ResolverStep.IDENTIFY_TCG
        return ResolverStep.IDENTIFY_SPORT
    if step in (ResolverStep.IDENTIFY_COMIC, ResolverStep.IDENTIFY_TCG, ResolverStep.IDENTIFY_SPORT):
        return ResolverStep.ANALYZE
    if step is ResolverStep.ANALYZE:
        return ResolverStep.SLAB
    if step is ResolverStep.SLAB:
        return ResolverStep.OCR_FALLBACK
    return ResolverStep.DONE


class CardResolver(LoggerMixin):
    """Runs the identification strategies in order and stops at the first card.

    Per-step transport failures are absorbed; a fully exhausted sequence
    yields an IdentificationResult without a card. Only caller-side defects
    (InvalidInputError, ConfigurationError) raise.
    """

    def __init__(self, client: RecognitionClient, weights: Optional[ScoringWeights] = None,
                 tcg_keywords: Sequence[str] = TCG_KEYWORDS, language: Optional[str] = None):
        self.client = client
        self.weights = weights or ScoringWeights.from_settings(settings)
        self.tcg_keywords = tuple(k.lower() for k in tcg_keywords)
        self.language = language or settings.RECOGNITION_LANGUAGE
        self._handlers: Dict[ResolverStep, Callable[[ResolutionState], Awaitable[None]]] = {
            ResolverStep.OCR_HINTS: self._ocr_hints,
            ResolverStep.DETECT: self._detect,
            ResolverStep.CLASSIFY: self._classify,
            ResolverStep.IDENTIFY_COMIC: self._identify_comic,
            ResolverStep.IDENTIFY_TCG: self._identify_tcg,
            ResolverStep.IDENTIFY_SPORT: self._identify_sport,
            ResolverStep.ANALYZE: self._analyze,
            ResolverStep.SLAB: self._slab,
            ResolverStep.OCR_FALLBACK: self._ocr_fallback,
        }

    async def identify(self, image: ImageInput) -> IdentificationResult:
        image = validate_image_input(image)
        # Fail fast on a missing token instead of inside the first step
        self.client.resolve_token()

        state = ResolutionState(image=image)
        context = self.log_start("identify_card", image_uri=image.image_uri)

        step = ResolverStep.OCR_HINTS
        while step is not ResolverStep.DONE:
            state.attempted.append(step)
            await self._handlers[step](state)
            if state.card is not None:
                break
            step = next_step(step, state, self.tcg_keywords)

        result = IdentificationResult(
            card=state.card,
            step=step if state.card is not None else None,
            attempted=list(state.attempted),
        )
        if result.identified:
            self.log_success(context, step=step.value, name=result.card.name, price=result.card.price)
        else:
            self.logger.warning("No identification across all strategies",
                                attempted=[s.value for s in state.attempted])
        return result

    async def _request(self, endpoint: Endpoint, state: ResolutionState, **flags: Any) -> Optional[Dict[str, Any]]:
        """Response of a successful call, or None for any kind of failure."""
        response = await self.client.call(endpoint, build_payload(state.image, **flags))
        if isinstance(response, TransportFailure):
            return None
        if not record_succeeded(first_record(response)):
            self.logger.info("Recognition record reported failure", endpoint=endpoint.name)
            return None
        return response

    def _card_from(self, response: Optional[Dict[str, Any]], state: ResolutionState) -> Optional[Card]:
        extraction = extract(response)
        if not extraction.candidates:
            return None
        tags = (extraction.tags or ClassificationTags()).merged_with(
            ClassificationTags(subcategory=state.subcategory))
        candidate = pick(extraction.candidates, tags, state.keywords, self.weights,
                         top_is_best_match=extraction.has_best_match)
        return assemble(candidate, extraction.tags)

    async def _identify_with(self, endpoint: Endpoint, state: ResolutionState, **flags: Any) -> None:
        response = await self._request(endpoint, state, **flags)
        state.card = self._card_from(response, state)

    async def _ocr_hints(self, state: ResolutionState) -> None:
        state.ocr_response = await self._request(Endpoint.CARD_OCR_ID, state)
        state.keywords = ocr_keywords(state.ocr_response)
        self.logger.debug("OCR hints collected", keywords=state.keywords)

    async def _detect(self, state: ResolutionState) -> None:
        response = await self._request(Endpoint.DETECT, state)
        state.multi_object = count_collectibles(response) > 1

    async def _classify(self, state: ResolutionState) -> None:
        response = await self._request(Endpoint.PROCESS, state)
        state.category = object_category(response)
        tags = extract(response).tags
        state.subcategory = tags.subcategory if tags is not None else None
        self.logger.debug("Image classified", category=state.category, subcategory=state.subcategory)

    async def _identify_comic(self, state: ResolutionState) -> None:
        await self._identify_with(Endpoint.COMICS_ID, state, pricing=True,
                                  price_sources=PRICE_SOURCES_COMICS)

    async def _identify_tcg(self, state: ResolutionState) -> None:
        await self._identify_with(Endpoint.TCG_ID, state, pricing=True, slab_id=True, slab_grade=True,
                                  analyze_all=state.multi_object, lang=self.language,
                                  price_sources=PRICE_SOURCES_TCG)

    async def _identify_sport(self, state: ResolutionState) -> None:
        await self._identify_with(Endpoint.SPORT_ID, state, pricing=True, slab_id=True, slab_grade=True,
                                  analyze_all=state.multi_object, lang=self.language,
                                  price_sources=PRICE_SOURCES_SPORT)

    async def _analyze(self, state: ResolutionState) -> None:
        await self._identify_with(Endpoint.ANALYZE, state, pricing=True,
                                  price_sources=PRICE_SOURCES_ANALYZE)

    async def _slab(self, state: ResolutionState) -> None:
        await self._identify_with(Endpoint.SLAB_ID, state, slab_grade=True)

    async def _ocr_fallback(self, state: ResolutionState) -> None:
        extraction = extract(state.ocr_response)
        top = extraction.candidates[0] if extraction.candidates else None
        state.card = assemble(top, extraction.tags)

"""Tests for the multi-strategy identification sequence."""

import pytest

from card_catalog.core.constants import PRICE_SOURCES_COMICS, PRICE_SOURCES_SPORT, PRICE_SOURCES_TCG
from card_catalog.core.types import Card, ImageInput, ResolverStep, TransportFailure
from card_catalog.match.score import ScoringWeights
from card_catalog.resolve.client import Endpoint
from card_catalog.resolve.orchestrator import CardResolver, ResolutionState, is_tcg_subcategory, next_step
from card_catalog.utils.error_handler import ConfigurationError, InvalidInputError

ALL_STEPS = [
    ResolverStep.OCR_HINTS,
    ResolverStep.DETECT,
    ResolverStep.CLASSIFY,
    ResolverStep.IDENTIFY_SPORT,
    ResolverStep.ANALYZE,
    ResolverStep.SLAB,
    ResolverStep.OCR_FALLBACK,
]


def _resolver(client):
    return CardResolver(client, weights=ScoringWeights(), language="en")


class TestNextStep:
    """Test the step transition function."""

    @pytest.fixture
    def state(self, image_input):
        return ResolutionState(image=image_input)

    def test_linear_prefix(self, state):
        assert next_step(ResolverStep.OCR_HINTS, state) is ResolverStep.DETECT
        assert next_step(ResolverStep.DETECT, state) is ResolverStep.CLASSIFY

    def test_classify_routes_comics(self, state):
        state.category = "comics"
        assert next_step(ResolverStep.CLASSIFY, state) is ResolverStep.IDENTIFY_COMIC

    def test_classify_routes_tcg(self, state):
        state.category = "card"
        state.subcategory = "Pokemon"
        assert next_step(ResolverStep.CLASSIFY, state) is ResolverStep.IDENTIFY_TCG

    @pytest.mark.parametrize("category, subcategory", [
        ("card", "Baseball"),
        ("card", None),
        (None, None),
        ("hand", None),
    ])
    def test_classify_defaults_to_sport(self, state, category, subcategory):
        state.category = category
        state.subcategory = subcategory
        assert next_step(ResolverStep.CLASSIFY, state) is ResolverStep.IDENTIFY_SPORT

    @pytest.mark.parametrize("step", [
        ResolverStep.IDENTIFY_COMIC, ResolverStep.IDENTIFY_TCG, ResolverStep.IDENTIFY_SPORT,
    ])
    def test_identify_steps_fall_through_to_analyze(self, state, step):
        assert next_step(step, state) is ResolverStep.ANALYZE

    def test_fallback_chain(self, state):
        assert next_step(ResolverStep.ANALYZE, state) is ResolverStep.SLAB
        assert next_step(ResolverStep.SLAB, state) is ResolverStep.OCR_FALLBACK
        assert next_step(ResolverStep.OCR_FALLBACK, state) is ResolverStep.DONE

    def test_card_ends_sequence(self, state):
        state.card = Card(name="Found")
        assert next_step(ResolverStep.DETECT, state) is ResolverStep.DONE

    @pytest.mark.parametrize("subcategory, expected", [
        ("Pokemon", True),
        ("Magic: The Gathering", True),
        ("Yu-Gi-Oh!", True),
        ("One Piece Card Game", True),
        ("Basketball", False),
        (None, False),
        ("", False),
    ])
    def test_is_tcg_subcategory(self, subcategory, expected):
        assert is_tcg_subcategory(subcategory) is expected


class TestCardResolver:
    """Test end-to-end identification against a fake recognition client."""

    @pytest.mark.asyncio
    async def test_sport_card_identified_on_primary_endpoint(self, fake_client, make_response,
                                                             card_object, sample_best_match, image_input):
        client = fake_client({
            Endpoint.PROCESS: make_response([{"name": "Card", "_tags": {"Subcategory": [{"name": "Basketball"}]}}]),
            Endpoint.SPORT_ID: make_response([card_object(best=sample_best_match)]),
        })

        result = await _resolver(client).identify(image_input)

        assert result.identified
        assert result.step is ResolverStep.IDENTIFY_SPORT
        assert result.card.name == "Michael Jordan"
        assert result.card.price == 200.0
        assert client.endpoints == [Endpoint.CARD_OCR_ID, Endpoint.DETECT, Endpoint.PROCESS, Endpoint.SPORT_ID]

    @pytest.mark.asyncio
    async def test_sport_request_flags(self, fake_client, make_response, card_object, image_input):
        client = fake_client({Endpoint.SPORT_ID: make_response([card_object(best={"name": "A"})])})

        await _resolver(client).identify(image_input)

        payload = client.payload_for(Endpoint.SPORT_ID)
        assert payload["records"] == [{"_base64": image_input.base64}]
        assert payload["pricing"] is True
        assert payload["slab_id"] is True
        assert payload["slab_grade"] is True
        assert payload["analyze_all"] is False
        assert payload["lang"] == "en"
        assert payload["price_sources"] == PRICE_SOURCES_SPORT

    @pytest.mark.asyncio
    async def test_comic_uses_only_the_comics_endpoint(self, fake_client, make_response, card_object, image_input):
        client = fake_client({
            Endpoint.PROCESS: make_response([{"name": "Comics"}]),
            Endpoint.COMICS_ID: make_response([card_object(
                best={"title": "Amazing Spider-Man #300", "publisher": "Marvel", "date": "1988"},
                name="Comics",
            )]),
        })

        result = await _resolver(client).identify(image_input)

        assert result.step is ResolverStep.IDENTIFY_COMIC
        assert result.card.title == "Amazing Spider-Man #300"
        assert result.card.publisher == "Marvel"
        assert Endpoint.SPORT_ID not in client.endpoints
        assert Endpoint.TCG_ID not in client.endpoints
        assert client.endpoints[-1] is Endpoint.COMICS_ID
        payload = client.payload_for(Endpoint.COMICS_ID)
        assert payload["pricing"] is True
        assert payload["price_sources"] == PRICE_SOURCES_COMICS
        assert "slab_id" not in payload

    @pytest.mark.asyncio
    async def test_pokemon_routes_to_tcg_endpoint(self, fake_client, make_response, card_object, image_input):
        client = fake_client({
            Endpoint.PROCESS: make_response([{"name": "Card", "_tags": {"Subcategory": [{"name": "Pokemon"}]}}]),
            Endpoint.TCG_ID: make_response([card_object(
                best={"name": "Charizard", "set_name": "Base Set", "card_number": "4/102", "subcategory": "Pokemon"},
            )]),
        })

        result = await _resolver(client).identify(image_input)

        assert result.step is ResolverStep.IDENTIFY_TCG
        assert result.card.name == "Charizard"
        assert Endpoint.SPORT_ID not in client.endpoints
        assert client.payload_for(Endpoint.TCG_ID)["price_sources"] == PRICE_SOURCES_TCG

    @pytest.mark.asyncio
    async def test_tcg_failure_falls_back_to_analyze(self, fake_client, make_response, card_object, image_input):
        client = fake_client({
            Endpoint.PROCESS: make_response([{"name": "Card", "_tags": {"Subcategory": [{"name": "Lorcana"}]}}]),
            Endpoint.ANALYZE: make_response([card_object(best={"name": "Elsa"})]),
        })

        result = await _resolver(client).identify(image_input)

        assert result.step is ResolverStep.ANALYZE
        assert result.attempted == [
            ResolverStep.OCR_HINTS, ResolverStep.DETECT, ResolverStep.CLASSIFY,
            ResolverStep.IDENTIFY_TCG, ResolverStep.ANALYZE,
        ]

    @pytest.mark.asyncio
    async def test_slab_fallback_keeps_grade_tags(self, fake_client, make_response, card_object, image_input):
        client = fake_client({
            Endpoint.SLAB_ID: make_response([card_object(
                best={"name": "Derek Jeter", "year": 1993},
                tags={"Grade": [{"name": "10"}], "Company": [{"name": "PSA"}]},
            )]),
        })

        result = await _resolver(client).identify(image_input)

        assert result.step is ResolverStep.SLAB
        assert result.card.grade == "10"
        assert result.card.grade_company == "PSA"
        assert client.payload_for(Endpoint.SLAB_ID) == {"records": [{"_base64": image_input.base64}],
                                                        "slab_grade": True}

    @pytest.mark.asyncio
    async def test_all_failures_yield_unidentified_result(self, fake_client, image_input):
        client = fake_client({})

        result = await _resolver(client).identify(image_input)

        assert not result.identified
        assert result.card is None
        assert result.step is None
        assert result.attempted == ALL_STEPS

    @pytest.mark.asyncio
    async def test_failed_record_status_counts_as_failure(self, fake_client, make_response, card_object, image_input):
        client = fake_client({
            Endpoint.SPORT_ID: make_response([card_object(best={"name": "Ghost"})], code=400),
            Endpoint.ANALYZE: make_response([card_object(best={"name": "Real"})]),
        })

        result = await _resolver(client).identify(image_input)

        assert result.step is ResolverStep.ANALYZE
        assert result.card.name == "Real"

    @pytest.mark.asyncio
    async def test_empty_candidates_fall_through(self, fake_client, make_response, image_input):
        client = fake_client({
            Endpoint.SPORT_ID: make_response([{"name": "Card"}]),
            Endpoint.ANALYZE: make_response([]),
            Endpoint.SLAB_ID: {"records": []},
        })

        result = await _resolver(client).identify(image_input)

        assert not result.identified
        assert result.attempted == ALL_STEPS

    @pytest.mark.asyncio
    async def test_ocr_fallback_uses_first_ocr_candidate(self, fake_client, make_response, card_object, image_input):
        client = fake_client({
            Endpoint.CARD_OCR_ID: make_response([card_object(
                best={"name": "Shohei Ohtani", "year": 2018},
                alternatives=[{"name": "Shohei Ohtani Chrome", "year": 2018, "set_name": "Topps Chrome"}],
            )]),
        })

        result = await _resolver(client).identify(image_input)

        assert result.step is ResolverStep.OCR_FALLBACK
        assert result.card.name == "Shohei Ohtani"
        assert result.attempted == ALL_STEPS

    @pytest.mark.asyncio
    async def test_ocr_keywords_steer_candidate_choice(self, fake_client, make_response, card_object, image_input):
        client = fake_client({
            Endpoint.CARD_OCR_ID: make_response([card_object(best={"name": "Ken Griffey Jr."})]),
            Endpoint.SPORT_ID: make_response([card_object(
                best={"name": "Mark McGwire", "year": 1989, "set_name": "Upper Deck"},
                alternatives=[{"name": "Ken Griffey Jr.", "year": 1989}],
            )]),
        })

        result = await _resolver(client).identify(image_input)

        assert result.step is ResolverStep.IDENTIFY_SPORT
        assert result.card.name == "Ken Griffey Jr."

    @pytest.mark.asyncio
    async def test_alternatives_without_best_match_are_scored(self, fake_client, make_response,
                                                              card_object, image_input):
        client = fake_client({
            Endpoint.CARD_OCR_ID: make_response([card_object(best={"name": "Michael Jordan"})]),
            Endpoint.SPORT_ID: make_response([card_object(alternatives=[
                {"name": "Michael Jordan"},
                {"name": "Michael Jordan", "year": 1986, "set_name": "Fleer", "card_number": "57"},
            ])]),
        })

        result = await _resolver(client).identify(image_input)

        assert result.step is ResolverStep.IDENTIFY_SPORT
        assert result.card.set_name == "Fleer"
        assert result.card.card_number == "57"

    @pytest.mark.asyncio
    async def test_multiple_objects_request_analyze_all(self, fake_client, make_response, card_object, image_input):
        client = fake_client({
            Endpoint.DETECT: make_response([{"name": "Card"}, {"name": "Card"}]),
            Endpoint.SPORT_ID: make_response([card_object(best={"name": "A"})]),
        })

        await _resolver(client).identify(image_input)

        assert client.payload_for(Endpoint.SPORT_ID)["analyze_all"] is True

    @pytest.mark.asyncio
    async def test_timeouts_on_every_endpoint_are_absorbed(self, fake_client, image_input):
        client = fake_client({endpoint: TransportFailure(endpoint.name, "timeout") for endpoint in Endpoint})
        result = await _resolver(client).identify(image_input)
        assert not result.identified

    @pytest.mark.asyncio
    async def test_short_payload_is_rejected_before_any_call(self, fake_client):
        client = fake_client({})
        with pytest.raises(InvalidInputError):
            await _resolver(client).identify(ImageInput.from_base64("abc"))
        assert client.calls == []

    @pytest.mark.asyncio
    async def test_image_without_payload_is_rejected(self, fake_client):
        with pytest.raises(InvalidInputError):
            await _resolver(fake_client({})).identify(ImageInput())

    @pytest.mark.asyncio
    async def test_missing_token_raises_configuration_error(self, fake_client, image_input):
        client = fake_client({}, token=None)
        with pytest.raises(ConfigurationError):
            await _resolver(client).identify(image_input)
        assert client.calls == []

    @pytest.mark.asyncio
    async def test_url_input_is_sent_as_url_record(self, fake_client, make_response, card_object):
        client = fake_client({Endpoint.SPORT_ID: make_response([card_object(best={"name": "A"})])})
        image = ImageInput.from_url("https://images.example.com/card.jpg")

        await _resolver(client).identify(image)

        assert client.payload_for(Endpoint.SPORT_ID)["records"] == [{"_url": "https://images.example.com/card.jpg"}]

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from core.exceptions import TranslationError
from core.translation_service import MyMemoryTranslator, split_for_query
from extraction.core.property_record import PropertyRecord

GLOSSARY = {
    "Casa en la playa": "House on the beach",
    "Hermosa casa": "Beautiful house",
    "Panamá": "Panama",
    "Piscina": "Pool",
}


@pytest_asyncio.fixture
async def translation_server():
    app = web.Application()
    app["queries"] = []
    app["fail"] = False

    async def translate(request):
        query = request.query["q"]
        app["queries"].append((query, request.query["langpair"]))
        if app["fail"]:
            return web.json_response({"responseStatus": 429, "responseDetails": "QUOTA EXCEEDED",
                                      "responseData": {"translatedText": None}})
        return web.json_response({"responseStatus": 200,
                                  "responseData": {"translatedText": GLOSSARY.get(query, query.upper())}})

    app.router.add_get("/get", translate)
    server = TestServer(app)
    await server.start_server()
    yield server
    await server.close()


@pytest_asyncio.fixture
async def translator(translation_server):
    translator = MyMemoryTranslator(api_url=str(translation_server.make_url("/get")),
                                    source_lang="es", target_lang="en", timeout=5)
    yield translator
    await translator.http_client.close()


def make_record():
    return PropertyRecord(
        title="Casa en la playa",
        price="$300,000",
        location="Panamá",
        description="Hermosa casa",
        features=["Piscina"],
        source="Encuentra24",
    )


class TestMyMemoryTranslator:
    @pytest.mark.asyncio
    async def test_translates_text_fields(self, translator, translation_server):
        translated = await translator.translate(make_record())

        assert translated.title == "House on the beach"
        assert translated.description == "Beautiful house"
        assert translated.location == "Panama"
        assert translated.features == ["Pool"]
        assert translated.price == "$300,000"
        assert all(langpair == "es|en" for _, langpair in translation_server.app["queries"])

    @pytest.mark.asyncio
    async def test_rejected_translation_raises(self, translator, translation_server):
        translation_server.app["fail"] = True
        record = make_record()

        with pytest.raises(TranslationError):
            await translator.translate(record)
        assert record.title == "Casa en la playa"

    @pytest.mark.asyncio
    async def test_unreachable_service_raises(self):
        translator = MyMemoryTranslator(api_url="http://127.0.0.1:9/get", timeout=2)
        try:
            with pytest.raises(TranslationError):
                await translator.translate(make_record())
        finally:
            await translator.http_client.close()

    @pytest.mark.asyncio
    async def test_empty_fields_are_not_sent(self, translator, translation_server):
        await translator.translate(PropertyRecord(title="Piscina"))
        assert [query for query, _ in translation_server.app["queries"]] == ["Piscina"]


def test_split_for_query():
    text = "Primera oración. " * 60
    chunks = split_for_query(text.strip(), limit=100)

    assert all(len(chunk) <= 100 for chunk in chunks)
    assert " ".join(chunks) == text.strip()

"""
Tests for encoding and decoding scrapbook bodies.
"""

import base64
import json
import math
import random
import uuid

import pytest

from scrapbook.models.color import rgb_to_hex
from scrapbook.models.page import ElementKind, PageElement, Point, ScrapbookPage
from scrapbook.services.page_codec import BodyEncodeError, PageCodec, page_codec


def _single_blank_page(pages):
    return len(pages) == 1 and pages[0].elements == [] and pages[0].drawing_data is None


class TestDecodeDefaults:
    """Missing, empty and unreadable bodies open as one blank page."""

    def test_none(self):
        assert _single_blank_page(page_codec.decode(None))

    def test_empty_bytes(self):
        assert _single_blank_page(page_codec.decode(b""))

    def test_empty_page_list(self):
        assert _single_blank_page(page_codec.decode(b"[]"))

    @pytest.mark.parametrize(
        "data",
        [
            b"\x00\x01\x02\xff",
            b"not json",
            b"{}",
            b'{"id": "x"}',
            b'[{"id": "not-a-uuid"}]',
            b'[{"id": "6B2D3C1E-1F7A-4F4B-9D65-1B7B1C7E2A10", "elements": 5}]',
            b'[{"elements": [{"imageData": "%%%not base64%%%"}]}]',
            b"[" * 5000,
        ],
    )
    def test_corrupt_bodies_recover(self, data):
        """Test that unreadable bodies never raise."""
        assert _single_blank_page(page_codec.decode(data))

    def test_report_flags_recovery(self):
        result = page_codec.decode_report(b"garbage")
        assert result.recovered
        assert result.error
        assert len(result.pages) == 1

    def test_report_for_missing_body_is_not_recovery(self):
        result = page_codec.decode_report(None)
        assert not result.recovered
        assert result.error is None

    def test_recovery_is_logged(self, caplog):
        with caplog.at_level("WARNING"):
            page_codec.decode(b"garbage")
        assert "unreadable scrapbook body" in caplog.text


class TestRoundTrip:

    def test_mixed_pages(self):
        pages = [
            ScrapbookPage(
                elements=[
                    PageElement.from_text(
                        "Hello",
                        text_color="#12AB34",
                        font_size=24.5,
                        font_name="Georgia",
                        position=Point(x=10.25, y=-3.5),
                        scale=2.5,
                        rotation=-45.0,
                        z_index=1700000000.123456,
                    ),
                    PageElement.from_image(b"\x89PNG\r\n\x1a\n\x00binary", rotation=370.0),
                ],
                drawing_data=b'{"strokes": []}',
            ),
            ScrapbookPage(),
            ScrapbookPage(elements=[PageElement.from_text("")]),
        ]

        assert page_codec.decode(page_codec.encode(pages)) == pages

    def test_page_and_element_order_preserved(self):
        elements = [PageElement.from_text(str(i), z_index=100.0 - i) for i in range(5)]
        pages = [ScrapbookPage(elements=elements), ScrapbookPage(), ScrapbookPage()]

        decoded = page_codec.decode(page_codec.encode(pages))

        assert [page.id for page in decoded] == [page.id for page in pages]
        assert [e.text for e in decoded[0].elements] == ["0", "1", "2", "3", "4"]

    def test_encode_is_deterministic(self):
        pages = [ScrapbookPage(elements=[PageElement.from_text("same", z_index=1.0)])]
        assert page_codec.encode(pages) == page_codec.encode(pages)

    def test_alpha_is_dropped(self):
        element = PageElement.from_text("x", text_color="#11223344")
        decoded = page_codec.decode(page_codec.encode([ScrapbookPage(elements=[element])]))
        assert decoded[0].elements[0].text_color == "#112233"


class TestWireFormat:
    """The JSON layout of a body."""

    def test_keys_and_encodings(self):
        element = PageElement.from_image(b"abc", position=Point(x=1, y=2), z_index=5.0)
        page = ScrapbookPage(elements=[element], drawing_data=b"ink")

        data = json.loads(page_codec.encode([page]))

        assert list(data[0].keys()) == ["id", "elements", "drawingData"]
        assert data[0]["id"] == str(page.id).upper()
        assert data[0]["drawingData"] == base64.b64encode(b"ink").decode()

        record = data[0]["elements"][0]
        assert list(record.keys()) == [
            "id",
            "imageData",
            "textColor",
            "fontSize",
            "fontName",
            "position",
            "scale",
            "rotation",
            "zIndex",
        ]
        assert record["imageData"] == "YWJj"
        assert record["position"] == [1.0, 2.0]
        assert record["zIndex"] == 5.0

    def test_absent_drawing_is_omitted(self):
        data = json.loads(page_codec.encode([ScrapbookPage()]))
        assert "drawingData" not in data[0]

    def test_decodes_foreign_body(self):
        """Test decoding a body written by another client."""
        page_id = uuid.uuid4()
        body = json.dumps(
            [
                {
                    "id": str(page_id).upper(),
                    "elements": [
                        {
                            "id": str(uuid.uuid4()).upper(),
                            "text": "Trip",
                            "textColor": "#ff0000",
                            "fontSize": 20,
                            "fontName": "Avenir",
                            "position": {"x": 5, "y": 6},
                            "scale": 1.5,
                            "rotation": 0,
                            "zIndex": 12.5,
                            "futureField": True,
                        }
                    ],
                }
            ]
        ).encode()

        pages = page_codec.decode(body)

        assert pages[0].id == page_id
        element = pages[0].elements[0]
        assert element.kind == ElementKind.TEXT
        assert element.text_color == "#FF0000"
        assert element.position == Point(x=5, y=6)
        assert element.font_size == 20.0

    def test_malformed_elements_do_not_reject_document(self):
        body = json.dumps(
            [
                {
                    "id": str(uuid.uuid4()),
                    "elements": [
                        {"id": str(uuid.uuid4()), "imageData": "YWJj", "text": "both",
                         "textColor": "#000000", "fontSize": 18, "fontName": "System",
                         "position": [0, 0], "scale": 1, "rotation": 0, "zIndex": 1},
                        {"id": str(uuid.uuid4()),
                         "textColor": "#000000", "fontSize": 18, "fontName": "System",
                         "position": [0, 0], "scale": 1, "rotation": 0, "zIndex": 2},
                    ],
                }
            ]
        ).encode()

        elements = page_codec.decode(body)[0].elements

        assert [e.kind for e in elements] == [ElementKind.IMAGE, ElementKind.PLACEHOLDER]

    def test_bad_color_decodes_as_black(self):
        body = page_codec.encode([ScrapbookPage(elements=[PageElement.from_text("x")])])
        body = body.replace(b'"#000000"', b'"purple"')
        assert page_codec.decode(body)[0].elements[0].text_color == "#000000"


class TestEncodeFailure:

    def test_failure_raises_body_encode_error(self):
        class BrokenAdapter:
            def dump_json(self, *args, **kwargs):
                raise ValueError("boom")

        codec = PageCodec()
        codec._adapter = BrokenAdapter()

        with pytest.raises(BodyEncodeError):
            codec.encode([ScrapbookPage()])

    @pytest.mark.parametrize("field", ["scale", "rotation", "z_index", "font_size"])
    @pytest.mark.parametrize("value", [math.inf, -math.inf, math.nan])
    def test_non_finite_number_is_refused(self, field, value):
        """Test that inf and nan never reach a body, where JSON would store null."""
        element = PageElement.from_text("keep me")
        setattr(element, field, value)

        with pytest.raises(BodyEncodeError):
            page_codec.encode([ScrapbookPage(elements=[element])])

    def test_non_finite_position_is_refused(self):
        element = PageElement.from_text("keep me")
        element.position = Point.model_construct(x=math.inf, y=0.0)

        with pytest.raises(BodyEncodeError):
            page_codec.encode([ScrapbookPage(elements=[element])])


class TestFiniteNumbers:
    """Models only hold numbers that JSON can represent."""

    @pytest.mark.parametrize("value", [math.inf, -math.inf, math.nan])
    def test_point_rejects_non_finite(self, value):
        with pytest.raises(ValueError):
            Point(x=value, y=0)

    @pytest.mark.parametrize("field", ["scale", "rotation", "z_index", "font_size"])
    def test_element_rejects_non_finite(self, field):
        with pytest.raises(ValueError):
            PageElement.from_text("x", **{field: math.inf})

    def test_overflowing_addition_raises(self):
        with pytest.raises(ValueError):
            Point(x=1e308, y=0) + Point(x=1e308, y=0)

    @pytest.mark.parametrize("token", [b"null", b'"Infinity"', b'"NaN"'])
    def test_non_finite_body_is_recovered(self, token):
        body = page_codec.encode([ScrapbookPage(elements=[PageElement.from_text("x", scale=2.0)])])
        body = body.replace(b'"scale":2.0', b'"scale":' + token)

        assert page_codec.decode_report(body).recovered


BOUNDARY_FLOATS = [
    0.0,
    -0.0,
    5e-324,
    1e-300,
    -123.456,
    1e300,
    -1.7976931348623157e308,
    1.7976931348623157e308,
]

TEXTS = ["", " ", "Hello", "héllo wörld", "日本語 🎉", "line\nbreak", 'quote " and \\ slash']


def _random_element(rng: random.Random) -> PageElement:
    payload = rng.choice(["image", "text", "both", "neither"])
    image_data = bytes(rng.randrange(256) for _ in range(rng.randrange(1, 16)))

    def number() -> float:
        return rng.choice(BOUNDARY_FLOATS + [rng.uniform(-1e6, 1e6)])

    # Plain construction accepts both or neither payload, as decoding does
    return PageElement(
        image_data=image_data if payload in ("image", "both") else None,
        text=rng.choice(TEXTS) if payload in ("text", "both") else None,
        text_color=rgb_to_hex(rng.randrange(256), rng.randrange(256), rng.randrange(256)),
        font_size=number(),
        font_name=rng.choice(["System", "Georgia", "Avenir Next", ""]),
        position=Point(x=number(), y=number()),
        scale=number(),
        rotation=number(),
        z_index=rng.choice([0.0, -1e308, 1e308, 1700000000.123456, rng.random() * 2e9]),
    )


def _random_document(rng: random.Random) -> list[ScrapbookPage]:
    return [
        ScrapbookPage(
            elements=[_random_element(rng) for _ in range(rng.randrange(6))],
            drawing_data=rng.choice([None, b"", b'{"strokes": []}', bytes(range(256))]),
        )
        for _ in range(rng.randrange(1, 5))
    ]


class TestRoundTripSweep:

    @pytest.mark.parametrize("seed", range(40))
    def test_generated_documents(self, seed):
        pages = _random_document(random.Random(seed))
        assert page_codec.decode(page_codec.encode(pages)) == pages

    @pytest.mark.parametrize("value", BOUNDARY_FLOATS)
    def test_boundary_floats(self, value):
        element = PageElement(
            text="x",
            font_size=value,
            position=Point(x=value, y=-value),
            scale=value,
            rotation=value,
            z_index=value,
        )

        decoded = page_codec.decode(page_codec.encode([ScrapbookPage(elements=[element])]))[0]
        result = decoded.elements[0]

        assert result == element
        assert math.copysign(1.0, result.position.x) == math.copysign(1.0, value)
        assert math.copysign(1.0, result.z_index) == math.copysign(1.0, value)

    @pytest.mark.parametrize("text", TEXTS)
    def test_text_values(self, text):
        element = PageElement.from_text(text)
        decoded = page_codec.decode(page_codec.encode([ScrapbookPage(elements=[element])]))
        assert decoded[0].elements[0].text == text

    @pytest.mark.parametrize(
        "image_data, text, kind",
        [
            (b"img", "caption", ElementKind.IMAGE),
            (None, None, ElementKind.PLACEHOLDER),
            (b"", None, ElementKind.IMAGE),
        ],
    )
    def test_degraded_records(self, image_data, text, kind):
        element = PageElement(image_data=image_data, text=text)

        decoded = page_codec.decode(page_codec.encode([ScrapbookPage(elements=[element])]))

        assert decoded[0].elements == [element]
        assert decoded[0].elements[0].kind == kind

"""
Unit tests for the image request adapter.
"""

import asyncio
import logging

import pytest

from services.image_adapter import (
    EditResponse,
    GeneratedImage,
    GenerateResponse,
    GenerationRequest,
    InlineImage,
    ProviderError,
    ResponsePart,
    SourceImage,
    find_first_inline_image,
    parse_edit_response,
    parse_generate_response,
)
from tests.image.config import (
    EDIT_PROMPT,
    EDITED_PNG_B64,
    GENERATE_PROMPT,
    GENERATED_JPEG_B64,
    SOURCE_PNG_B64,
    edit_response,
    generate_response,
)

SOURCE = SourceImage(data=SOURCE_PNG_B64, mime_type="image/png")


def run(coro):
    return asyncio.run(coro)


def test_generate_path_used_without_source_image(make_adapter):
    adapter, client = make_adapter(generate_json=generate_response())

    run(adapter.execute(GENERATE_PROMPT))

    assert [call["op"] for call in client.calls] == ["generate_images"]
    call = client.calls[0]
    assert call["model"] == "imagen-4.0-generate-001"
    assert call["prompt"] == GENERATE_PROMPT
    assert call["number_of_images"] == 1
    assert call["output_mime_type"] == "image/jpeg"
    assert call["aspect_ratio"] == "1:1"


def test_edit_path_used_with_source_image(make_adapter):
    adapter, client = make_adapter(edit_json=edit_response())

    run(adapter.execute(EDIT_PROMPT, SOURCE))

    assert [call["op"] for call in client.calls] == ["generate_content"]
    call = client.calls[0]
    assert call["model"] == "gemini-2.5-flash-image"
    assert call["modalities"] == ["IMAGE"]
    assert call["parts"] == [
        {"inline_data": {"mime_type": "image/png", "data": SOURCE_PNG_B64}},
        {"text": EDIT_PROMPT},
    ]


def test_path_selection_ignores_prompt_content(make_adapter):
    adapter, client = make_adapter(edit_json=edit_response(), generate_json=generate_response())

    run(adapter.execute("edit this image please"))
    run(adapter.execute("", SOURCE))

    assert [call["op"] for call in client.calls] == ["generate_images", "generate_content"]


def test_generate_empty_image_list(make_adapter):
    adapter, _ = make_adapter(generate_json=generate_response(images=[]))

    with pytest.raises(ProviderError) as excinfo:
        run(adapter.execute(GENERATE_PROMPT))

    assert excinfo.value.reason == "no image returned"
    assert excinfo.value.code == "no_image_returned"


def test_generate_missing_predictions_key(make_adapter):
    adapter, _ = make_adapter(generate_json={})

    with pytest.raises(ProviderError) as excinfo:
        run(adapter.execute(GENERATE_PROMPT))

    assert excinfo.value.reason == "no image returned"


@pytest.mark.parametrize(
    "first_image",
    [
        {"bytesBase64Encoded": "", "mimeType": "image/jpeg"},
        {"mimeType": "image/jpeg"},
    ],
)
def test_generate_empty_payload(make_adapter, first_image):
    adapter, _ = make_adapter(generate_json=generate_response(images=[first_image]))

    with pytest.raises(ProviderError) as excinfo:
        run(adapter.execute(GENERATE_PROMPT))

    assert excinfo.value.reason == "empty image payload"
    assert excinfo.value.code == "empty_image_payload"


def test_edit_without_inline_image_part(make_adapter):
    adapter, _ = make_adapter(edit_json=edit_response(parts=[{"text": "I cannot edit this image."}]))

    with pytest.raises(ProviderError) as excinfo:
        run(adapter.execute(EDIT_PROMPT, SOURCE))

    assert excinfo.value.reason == "no edited image produced"
    assert excinfo.value.code == "no_edited_image"


def test_edit_without_candidates(make_adapter):
    adapter, _ = make_adapter(edit_json={"candidates": []})

    with pytest.raises(ProviderError) as excinfo:
        run(adapter.execute(EDIT_PROMPT, SOURCE))

    assert excinfo.value.reason == "no edited image produced"


def test_edit_returns_inline_image_with_its_media_type(make_adapter):
    adapter, _ = make_adapter(
        edit_json=edit_response(parts=[{"inlineData": {"mimeType": "image/webp", "data": EDITED_PNG_B64}}])
    )

    result = run(adapter.execute(EDIT_PROMPT, SOURCE))

    assert result == GeneratedImage(data=EDITED_PNG_B64, mime_type="image/webp")


def test_edit_accepts_snake_case_inline_data(make_adapter):
    adapter, _ = make_adapter(
        edit_json=edit_response(parts=[{"inline_data": {"mime_type": "image/png", "data": EDITED_PNG_B64}}])
    )

    result = run(adapter.execute(EDIT_PROMPT, SOURCE))

    assert result == GeneratedImage(data=EDITED_PNG_B64, mime_type="image/png")


def test_generate_media_type_is_fixed(make_adapter):
    adapter, _ = make_adapter(
        generate_json=generate_response(images=[{"bytesBase64Encoded": GENERATED_JPEG_B64, "mimeType": "image/png"}])
    )

    result = run(adapter.execute(GENERATE_PROMPT))

    assert result == GeneratedImage(data=GENERATED_JPEG_B64, mime_type="image/jpeg")
    assert result.to_data_url() == f"data:image/jpeg;base64,{GENERATED_JPEG_B64}"


def test_generate_only_first_image_is_used(make_adapter):
    adapter, _ = make_adapter(
        generate_json=generate_response(
            images=[{"bytesBase64Encoded": GENERATED_JPEG_B64}, {"bytesBase64Encoded": "c2Vjb25k"}]
        )
    )

    result = run(adapter.execute(GENERATE_PROMPT))

    assert result.data == GENERATED_JPEG_B64


def test_generate_accepts_sdk_response_shape(make_adapter):
    adapter, _ = make_adapter(generate_json={"generatedImages": [{"image": {"imageBytes": GENERATED_JPEG_B64}}]})

    result = run(adapter.execute(GENERATE_PROMPT))

    assert result == GeneratedImage(data=GENERATED_JPEG_B64, mime_type="image/jpeg")


def test_transport_error_is_wrapped(make_adapter):
    adapter, _ = make_adapter(error=ConnectionError("connection reset by peer"))

    with pytest.raises(ProviderError) as excinfo:
        run(adapter.execute(GENERATE_PROMPT))

    assert excinfo.value.reason == "connection reset by peer"
    assert excinfo.value.code == "provider_error"
    assert str(excinfo.value) == "Gemini API Error: connection reset by peer"
    assert isinstance(excinfo.value.__cause__, ConnectionError)


def test_error_without_message_becomes_unknown(make_adapter):
    adapter, _ = make_adapter(error=RuntimeError())

    with pytest.raises(ProviderError) as excinfo:
        run(adapter.execute(EDIT_PROMPT, SOURCE))

    assert excinfo.value.reason == "unknown error"
    assert excinfo.value.code == "unknown_error"


def test_malformed_response_is_wrapped(make_adapter):
    adapter, _ = make_adapter(edit_json={"candidates": ["not-a-dict"]})

    with pytest.raises(ProviderError) as excinfo:
        run(adapter.execute(EDIT_PROMPT, SOURCE))

    assert excinfo.value.code == "provider_error"


def test_identical_inputs_give_identical_outputs(make_adapter):
    adapter, _ = make_adapter(edit_json=edit_response(), generate_json=generate_response())

    assert run(adapter.execute(GENERATE_PROMPT)) == run(adapter.execute(GENERATE_PROMPT))
    assert run(adapter.execute(EDIT_PROMPT, SOURCE)) == run(adapter.execute(EDIT_PROMPT, SOURCE))


def test_run_with_request_object(make_adapter):
    adapter, client = make_adapter(edit_json=edit_response())
    request = GenerationRequest(prompt=EDIT_PROMPT, source_image=SOURCE)

    result = run(adapter.run(request))

    assert request.mode == "edit"
    assert adapter.model_for(request) == "gemini-2.5-flash-image"
    assert result.mime_type == "image/png"
    assert client.calls[0]["op"] == "generate_content"


def test_find_first_inline_image_skips_text_and_empty_parts():
    parts = (
        ResponsePart(text="thinking"),
        ResponsePart(inline_image=InlineImage(data="", mime_type="image/png")),
        ResponsePart(inline_image=InlineImage(data="Zmlyc3Q=", mime_type="image/png")),
        ResponsePart(inline_image=InlineImage(data="c2Vjb25k", mime_type="image/webp")),
    )

    assert find_first_inline_image(parts) == InlineImage(data="Zmlyc3Q=", mime_type="image/png")
    assert find_first_inline_image(parts[:2]) is None
    assert find_first_inline_image(()) is None


def test_parsers_produce_tagged_variants():
    edit = parse_edit_response(edit_response())
    generate = parse_generate_response(generate_response())

    assert isinstance(edit, EditResponse) and edit.kind == "edit"
    assert isinstance(generate, GenerateResponse) and generate.kind == "generate"
    assert edit.parts[0].text == "Here is your edited image."
    assert generate.images[0].data == GENERATED_JPEG_B64


def test_inline_image_without_media_type_defaults_to_png():
    parsed = parse_edit_response(edit_response(parts=[{"inlineData": {"data": EDITED_PNG_B64}}]))

    assert parsed.parts[0].inline_image == InlineImage(data=EDITED_PNG_B64, mime_type="image/png")


def _adapter_errors(caplog):
    return [
        record
        for record in caplog.records
        if record.name == "image_studio.services.image_adapter" and record.levelno == logging.ERROR
    ]


def test_canonical_failure_logged_once(make_adapter, caplog):
    adapter, _ = make_adapter(generate_json=generate_response(images=[]))

    with caplog.at_level(logging.ERROR, logger="image_studio.services.image_adapter"):
        with pytest.raises(ProviderError):
            run(adapter.execute(GENERATE_PROMPT))

    assert len(_adapter_errors(caplog)) == 1


def test_wrapped_failure_logged_once(make_adapter, caplog):
    adapter, _ = make_adapter(error=TimeoutError("read timed out"))

    with caplog.at_level(logging.ERROR, logger="image_studio.services.image_adapter"):
        with pytest.raises(ProviderError):
            run(adapter.execute(EDIT_PROMPT, SOURCE))

    errors = _adapter_errors(caplog)
    assert len(errors) == 1
    assert errors[0].exc_info is not None

"""Tests for the operation orchestrators and the operation registry.

HOW: Each operation runs against the FakeApi transport with a recording
sleep, so asynchronous tasks resolve instantly. Assertions cover the
request sequence, validation boundaries, and the assembled ItemResult.
"""

from __future__ import annotations

import json
import struct

import pytest

from camb_connector.api.errors import GenericApiError, TaskError, ValidationError
from camb_connector.core.items import BinaryData, Item
from camb_connector.operations import OPERATIONS, OperationContext, OperationKind, get_operation
from camb_connector.operations.params import output_names
from camb_connector.operations.speech import SynthesizeOperation


def _execute(run_with_client, sleeps, kind, item, index=0):
    operation = get_operation(kind)

    async def _go(client):
        ctx = OperationContext(client=client, interval_s=3.0, max_duration_s=None, sleep=sleeps)
        return await operation.execute(ctx, item, index)

    return run_with_client(_go)


def _media(name="clip.wav", data=b"RIFFmedia"):
    return {"data": BinaryData(data, name, "audio/wav")}


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TestRegistry:
    def test_every_kind_is_registered(self):
        assert set(OPERATIONS) == set(OperationKind)

    def test_registered_class_matches_key(self):
        for kind, cls in OPERATIONS.items():
            assert cls.kind is kind

    def test_lookup(self):
        assert OperationKind.lookup("speech", "synthesize") is OperationKind.SPEECH_SYNTHESIZE

    def test_lookup_unknown(self):
        with pytest.raises(ValidationError, match="Unknown operation"):
            OperationKind.lookup("speech", "sing")


# ---------------------------------------------------------------------------
# Synchronous synthesis
# ---------------------------------------------------------------------------


class TestSynthesizeValidation:
    @pytest.mark.parametrize("length", [3, 3000])
    def test_accepts_boundaries(self, length):
        SynthesizeOperation().validate({"text": "a" * length, "voice": 1}, Item())

    @pytest.mark.parametrize("length", [0, 2, 3001])
    def test_rejects_outside_window(self, api, run_with_client, sleeps, length):
        item = Item(json={"text": "a" * length, "voice": 1})
        with pytest.raises(ValidationError):
            _execute(run_with_client, sleeps, OperationKind.SPEECH_SYNTHESIZE, item)
        assert api.requests == []

    def test_rejects_unknown_model(self):
        with pytest.raises(ValidationError, match="model"):
            SynthesizeOperation().validate({"text": "hello", "voice": 1, "model": "mars-1"}, Item())

    def test_rejects_speed_out_of_range(self):
        with pytest.raises(ValidationError, match="Speed"):
            SynthesizeOperation().validate({"text": "hello", "voice": 1, "speed": 3}, Item())

    def test_requires_voice(self):
        with pytest.raises(ValidationError, match="voice"):
            SynthesizeOperation().validate({"text": "hello"}, Item())

    def test_rejects_non_numeric_speed(self):
        with pytest.raises(ValidationError, match="speed"):
            SynthesizeOperation().validate({"text": "hello", "voice": 1, "speed": "fast"}, Item())

    def test_numeric_text_is_spoken_as_string(self, api, run_with_client, sleeps):
        api.binary("POST", "/tts-stream", b"RIFFdigits")
        item = Item(json={"text": 12345, "voice": 1})
        result = _execute(run_with_client, sleeps, OperationKind.SPEECH_SYNTHESIZE, item)
        assert json.loads(api.requests[0].content)["text"] == "12345"
        assert result.json["text"] == "12345"


class TestSynthesize:
    def test_pcm_is_wrapped_with_model_sample_rate(self, api, run_with_client, sleeps):
        api.binary("POST", "/tts-stream", b"\x00" * 1000)
        item = Item(json={"text": "Hello there", "voice": 12, "output_format": "pcm_s16le"})
        result = _execute(run_with_client, sleeps, OperationKind.SPEECH_SYNTHESIZE, item, index=4)

        audio = result.binary["data"]
        assert len(audio.data) == 1044
        assert audio.data.startswith(b"RIFF")
        assert struct.unpack_from("<I", audio.data, 24)[0] == 24000
        assert audio.mime_type == "audio/wav"
        assert audio.file_name == "tts_output.wav"
        assert result.json["size"] == 1044
        assert result.json["outputFormat"] == "pcm_s16le"
        assert result.paired_item == 4

    def test_request_body_and_options(self, api, run_with_client, sleeps):
        api.binary("POST", "/tts-stream", b"fLaC....")
        item = Item(json={
            "text": "Hello there",
            "voice": 12,
            "model": "mars-8-instruct",
            "output_format": "flac",
            "speed": 1.5,
            "language": "en-US",
            "user_instructions": "whisper",
            "file_name": "greeting.flac",
            "binary_property_name": "audio",
        })
        result = _execute(run_with_client, sleeps, OperationKind.SPEECH_SYNTHESIZE, item)

        request = api.requests[0]
        assert json.loads(request.content) == {
            "text": "Hello there",
            "voice": 12,
            "model": "mars-8-instruct",
            "output_format": "flac",
            "speed": 1.5,
            "language": "en-US",
            "user_instructions": "whisper",
        }
        assert request.extensions["timeout"]["read"] == 60.0
        audio = result.binary["audio"]
        assert audio.data == b"fLaC...."
        assert audio.mime_type == "audio/flac"
        assert audio.file_name == "greeting.flac"

    def test_adts_extension(self, api, run_with_client, sleeps):
        api.binary("POST", "/tts-stream", b"\xff\xf1")
        item = Item(json={"text": "Hello", "voice": 1, "output_format": "adts"})
        result = _execute(run_with_client, sleeps, OperationKind.SPEECH_SYNTHESIZE, item)
        assert result.binary["data"].file_name == "tts_output.aac"
        assert result.binary["data"].mime_type == "audio/aac"


# ---------------------------------------------------------------------------
# Asynchronous task operations
# ---------------------------------------------------------------------------


class TestTranslatedTts:
    def test_submit_poll_fetch(self, api, run_with_client, sleeps):
        api.json("POST", "/translated-tts", {"task_id": "t1"})
        api.json("GET", "/translated-tts/t1",
                 {"status": "pending"},
                 {"status": "SUCCESS", "run_id": "r1"})
        api.binary("GET", "/tts-result/r1", b"RIFF-translated-audio")

        item = Item(json={"text": "Good morning", "voice_id": 5, "source_language": 1, "target_language": 54})
        result = _execute(run_with_client, sleeps, OperationKind.SPEECH_TRANSLATED_TTS, item)

        assert api.paths() == [
            ("POST", "/translated-tts"),
            ("GET", "/translated-tts/t1"),
            ("GET", "/translated-tts/t1"),
            ("GET", "/tts-result/r1"),
        ]
        assert sleeps.calls == [3.0]
        assert result.json["runId"] == "r1"
        assert result.json["taskId"] == "t1"
        assert result.binary["data"].data == b"RIFF-translated-audio"
        assert json.loads(api.requests[0].content)["voice_id"] == 5

    def test_fetch_failure_after_success_is_fatal(self, api, run_with_client, sleeps):
        api.json("POST", "/translated-tts", {"task_id": "t1"})
        api.json("GET", "/translated-tts/t1", {"status": "SUCCESS", "run_id": "r1"})
        api.json("GET", "/tts-result/r1", {"detail": "storage error"}, status=500)

        item = Item(json={"text": "Good morning", "voice_id": 5, "source_language": 1, "target_language": 54})
        with pytest.raises(GenericApiError, match="storage error"):
            _execute(run_with_client, sleeps, OperationKind.SPEECH_TRANSLATED_TTS, item)
        assert len([p for p in api.paths() if p[0] == "POST"]) == 1

    def test_task_failure_propagates(self, api, run_with_client, sleeps):
        api.json("POST", "/translated-tts", {"task_id": "t1"})
        api.json("GET", "/translated-tts/t1", {"status": "PAYMENT_REQUIRED"})
        item = Item(json={"text": "Good morning", "voice_id": 5, "source_language": 1, "target_language": 54})
        with pytest.raises(TaskError) as info:
            _execute(run_with_client, sleeps, OperationKind.SPEECH_TRANSLATED_TTS, item)
        assert info.value.task_id == "t1"

    def test_numeric_text_is_sent_as_string(self, api, run_with_client, sleeps):
        api.json("POST", "/translated-tts", {"task_id": "t1"})
        api.json("GET", "/translated-tts/t1", {"status": "SUCCESS", "run_id": "r1"})
        api.binary("GET", "/tts-result/r1", b"RIFFaudio")
        item = Item(json={"text": 2024, "voice_id": 5, "source_language": 1, "target_language": 54})
        result = _execute(run_with_client, sleeps, OperationKind.SPEECH_TRANSLATED_TTS, item)
        assert json.loads(api.requests[0].content)["text"] == "2024"
        assert result.json["text"] == "2024"

    @pytest.mark.parametrize("key", ["age", "gender"])
    def test_rejects_non_numeric_voice_traits(self, api, run_with_client, sleeps, key):
        item = Item(json={
            "text": "Good morning", "voice_id": 5, "source_language": 1, "target_language": 54, key: "old",
        })
        with pytest.raises(ValidationError, match=key):
            _execute(run_with_client, sleeps, OperationKind.SPEECH_TRANSLATED_TTS, item)
        assert api.requests == []

    def test_success_without_run_id(self, api, run_with_client, sleeps):
        api.json("POST", "/translated-tts", {"task_id": "t1"})
        api.json("GET", "/translated-tts/t1", {"status": "SUCCESS"})
        item = Item(json={"text": "Good morning", "voice_id": 5, "source_language": 1, "target_language": 54})
        with pytest.raises(GenericApiError, match="without a run_id"):
            _execute(run_with_client, sleeps, OperationKind.SPEECH_TRANSLATED_TTS, item)

    def test_submit_without_task_id(self, api, run_with_client, sleeps):
        api.json("POST", "/translated-tts", {"message": "queued"})
        item = Item(json={"text": "Good morning", "voice_id": 5, "source_language": 1, "target_language": 54})
        with pytest.raises(GenericApiError, match="no task_id"):
            _execute(run_with_client, sleeps, OperationKind.SPEECH_TRANSLATED_TTS, item)


class TestGenerateSound:
    def test_generates_clip(self, api, run_with_client, sleeps):
        api.json("POST", "/text-to-sound", {"task_id": "s1"})
        api.json("GET", "/text-to-sound/s1", {"status": "SUCCESS", "run_id": "sr1"})
        api.binary("GET", "/text-to-sound-result/sr1", b"fLaCsound")

        item = Item(json={"prompt": "rain on a tin roof", "duration": 5, "audio_type": "sound"})
        result = _execute(run_with_client, sleeps, OperationKind.SOUND_GENERATE, item)

        assert json.loads(api.requests[0].content) == {
            "prompt": "rain on a tin roof", "audio_type": "sound", "duration": 5.0,
        }
        assert result.binary["data"].file_name == "sound.flac"
        assert result.json["runId"] == "sr1"

    @pytest.mark.parametrize("duration", [0, -1, 10.5])
    def test_rejects_bad_duration(self, duration):
        op = get_operation(OperationKind.SOUND_GENERATE)
        with pytest.raises(ValidationError, match="Duration"):
            op.validate({"prompt": "x", "duration": duration}, Item())

    def test_rejects_non_numeric_duration(self):
        op = get_operation(OperationKind.SOUND_GENERATE)
        with pytest.raises(ValidationError, match="duration"):
            op.validate({"prompt": "x", "duration": "long"}, Item())


class TestSeparateAudio:
    def test_downloads_both_stems_without_auth(self, api, run_with_client, sleeps):
        api.json("POST", "/audio-separation", {"task_id": "a1"})
        api.json("GET", "/audio-separation/a1", {"status": "SUCCESS", "run_id": "ar1"})
        api.json("GET", "/audio-separation-result/ar1", {
            "foreground_audio_url": "https://cdn.test/fg.wav",
            "background_audio_url": "https://cdn.test/bg.wav",
        })
        api.binary("GET", "https://cdn.test/fg.wav", b"RIFFvoice")
        api.binary("GET", "https://cdn.test/bg.wav", b"RIFFmusic")

        item = Item(json={"output_names": "vocals,music"}, binary=_media("song.mp3"))
        result = _execute(run_with_client, sleeps, OperationKind.AUDIO_SEPARATE, item)

        upload = api.requests[0]
        assert upload.headers["content-type"].startswith("multipart/form-data")
        assert b'name="media_file"; filename="song.mp3"' in upload.content
        downloads = api.requests[-2:]
        assert all("x-api-key" not in r.headers for r in downloads)
        assert result.binary["vocals"].data == b"RIFFvoice"
        assert result.binary["music"].data == b"RIFFmusic"
        assert result.json["stems"]["vocals"]["fileName"] == "separated_foreground.wav"

    def test_single_name_matching_a_default_keeps_both_stems(self, api, run_with_client, sleeps):
        api.json("POST", "/audio-separation", {"task_id": "a1"})
        api.json("GET", "/audio-separation/a1", {"status": "SUCCESS", "run_id": "ar1"})
        api.json("GET", "/audio-separation-result/ar1", {
            "foreground_audio_url": "https://cdn.test/fg.wav",
            "background_audio_url": "https://cdn.test/bg.wav",
        })
        api.binary("GET", "https://cdn.test/fg.wav", b"RIFFvoice")
        api.binary("GET", "https://cdn.test/bg.wav", b"RIFFmusic")

        item = Item(json={"output_names": "background"}, binary=_media())
        result = _execute(run_with_client, sleeps, OperationKind.AUDIO_SEPARATE, item)

        assert result.binary["background"].data == b"RIFFvoice"
        assert result.binary["foreground"].data == b"RIFFmusic"

    def test_requires_input_media(self, api, run_with_client, sleeps):
        with pytest.raises(ValidationError, match="binary data"):
            _execute(run_with_client, sleeps, OperationKind.AUDIO_SEPARATE, Item())
        assert api.requests == []


class TestTranscribe:
    def test_returns_segments(self, api, run_with_client, sleeps):
        api.json("POST", "/transcribe", {"task_id": "tr1"})
        api.json("GET", "/transcribe/tr1", {"status": "PENDING"}, {"status": "SUCCESS", "run_id": "trr1"})
        api.json("GET", "/transcription-result/trr1", [
            {"start": 0.0, "end": 1.2, "text": "Hello", "speaker": "SPEAKER_0"},
            {"start": 1.3, "end": 2.0, "text": " world ", "speaker": "SPEAKER_1"},
        ])

        item = Item(json={"language": 1}, binary=_media())
        result = _execute(run_with_client, sleeps, OperationKind.TRANSCRIPTION_TRANSCRIBE, item)

        assert b'name="language"' in api.requests[0].content
        assert result.json["text"] == "Hello world"
        assert result.json["segments"][1]["speaker"] == "SPEAKER_1"
        assert result.binary == {}

    def test_custom_binary_field(self, api, run_with_client, sleeps):
        item = Item(json={"language": 1, "binary_field": "audio"}, binary=_media())
        with pytest.raises(ValidationError, match="'audio'"):
            _execute(run_with_client, sleeps, OperationKind.TRANSCRIPTION_TRANSCRIBE, item)


class TestTranslate:
    def test_translates_texts(self, api, run_with_client, sleeps):
        api.json("POST", "/translate", {"task_id": "x1"})
        api.json("GET", "/translate/x1", {"status": "SUCCESS", "run_id": "xr1"})
        api.json("GET", "/translation-result/xr1", {"texts": ["Hola", "Adiós"]})

        item = Item(json={"texts": ["Hello", "Goodbye"], "source_language": 1, "target_language": 54, "formality": 1})
        result = _execute(run_with_client, sleeps, OperationKind.TRANSLATION_TRANSLATE, item)

        assert json.loads(api.requests[0].content) == {
            "texts": ["Hello", "Goodbye"], "source_language": 1, "target_language": 54, "formality": 1,
        }
        assert result.json["texts"] == ["Hola", "Adiós"]
        assert result.json["runId"] == "xr1"

    def test_rejects_empty_texts(self):
        op = get_operation(OperationKind.TRANSLATION_TRANSLATE)
        with pytest.raises(ValidationError):
            op.validate({"texts": ["  "], "source_language": 1, "target_language": 2}, Item())

    @pytest.mark.parametrize("key", ["formality", "gender", "age"])
    def test_rejects_non_numeric_options(self, key):
        op = get_operation(OperationKind.TRANSLATION_TRANSLATE)
        with pytest.raises(ValidationError, match=key):
            op.validate({"texts": ["Hi"], "source_language": 1, "target_language": 2, key: "x"}, Item())


class TestVoices:
    def test_list_voices(self, api, run_with_client, sleeps):
        api.json("GET", "/list-voices", [{"id": 3, "voice_name": "Nova"}])
        result = _execute(run_with_client, sleeps, OperationKind.VOICE_LIST, Item(), index=2)
        assert result.json["voices"][0]["name"] == "Nova"
        assert result.paired_item == 2

    def test_create_custom_voice(self, api, run_with_client, sleeps):
        api.json("POST", "/create-custom-voice", {"voice_id": 991})
        item = Item(json={"voice_name": "Narrator", "gender": 1, "age": 40}, binary=_media("ref.wav"))
        result = _execute(run_with_client, sleeps, OperationKind.VOICE_CREATE_CUSTOM, item)
        assert result.json == {"voiceId": 991, "voiceName": "Narrator"}
        assert b'name="file"; filename="ref.wav"' in api.requests[0].content

    def test_text_to_voice_previews(self, api, run_with_client, sleeps):
        api.json("POST", "/text-to-voice", {"task_id": "v1"})
        api.json("GET", "/text-to-voice/v1", {"status": "SUCCESS", "run_id": "vr1"})
        api.json("GET", "/text-to-voice-result/vr1", {
            "previews": ["https://cdn.test/p1.wav", "https://cdn.test/p2.wav"],
        })
        api.binary("GET", "https://cdn.test/p1.wav", b"RIFFone")
        api.binary("GET", "https://cdn.test/p2.wav", b"RIFFtwo")

        item = Item(json={"text": "Welcome aboard", "voice_description": "d" * 100, "output_names": ["first"]})
        result = _execute(run_with_client, sleeps, OperationKind.VOICE_TEXT_TO_VOICE, item)

        assert result.binary["first"].data == b"RIFFone"
        assert result.binary["preview_2"].data == b"RIFFtwo"
        assert result.json["runId"] == "vr1"

    def test_text_to_voice_description_too_short(self, api, run_with_client, sleeps):
        item = Item(json={"text": "Welcome aboard", "voice_description": "d" * 99})
        with pytest.raises(ValidationError, match="at least 100"):
            _execute(run_with_client, sleeps, OperationKind.VOICE_TEXT_TO_VOICE, item)
        assert api.requests == []


class TestOutputNames:
    DEFAULTS = ["foreground", "background"]

    def test_defaults_when_absent(self):
        assert output_names({}, "output_names", self.DEFAULTS) == self.DEFAULTS

    def test_padding_keeps_positional_default(self):
        assert output_names({"output_names": "vocals"}, "output_names", self.DEFAULTS) == ["vocals", "background"]

    def test_padding_skips_a_taken_default(self):
        assert output_names({"output_names": ["background"]}, "output_names", self.DEFAULTS) == [
            "background", "foreground",
        ]

    def test_rejects_repeated_names(self):
        with pytest.raises(ValidationError, match="repeats"):
            output_names({"output_names": "a,a"}, "output_names", self.DEFAULTS)


class TestLanguages:
    def test_list_target_languages(self, api, run_with_client, sleeps):
        api.json("GET", "/target-languages", [{"id": 54, "language": "Spanish", "short_name": "es-es"}])
        result = _execute(run_with_client, sleeps, OperationKind.LANGUAGE_LIST_TARGET, Item())
        assert result.json["languages"] == [{"id": 54, "language": "Spanish", "shortName": "es-es"}]

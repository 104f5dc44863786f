"""Tests for manifest loading and validation."""

import json
from pathlib import Path

import pytest

from mediasplit.errors import EmptyInputError, InvalidSplitSpecError
from mediasplit.manifest import (
    DurationSpec,
    PartsSpec,
    ReEncode,
    SizeSpec,
    SplitManifest,
    StreamCopy,
    encoding_from_dict,
    load_manifest,
    split_spec_from_dict,
)


class TestSplitSpecValidation:
    def test_valid_minimums(self):
        PartsSpec(2).validate()
        SizeSpec(1).validate()
        DurationSpec(10).validate()

    @pytest.mark.parametrize("spec", [PartsSpec(1), PartsSpec(0), SizeSpec(0.9), DurationSpec(9.5)])
    def test_below_minimum(self, spec):
        with pytest.raises(InvalidSplitSpecError):
            spec.validate()

    def test_invalid_spec_is_empty_input(self):
        assert issubclass(InvalidSplitSpecError, EmptyInputError)


class TestSplitSpecFromDict:
    def test_parts(self):
        assert split_spec_from_dict({"mode": "parts", "count": "3"}) == PartsSpec(3)

    def test_size(self):
        assert split_spec_from_dict({"mode": "size", "target_mb": 25}) == SizeSpec(25.0)

    def test_time(self):
        assert split_spec_from_dict({"mode": "time", "target_seconds": 60}) == DurationSpec(60.0)

    def test_missing_parameter(self):
        with pytest.raises(InvalidSplitSpecError, match="requires 'count'"):
            split_spec_from_dict({"mode": "parts"})

    @pytest.mark.parametrize("count", [3.0, "3", "3.0"])
    def test_parts_whole_number_forms(self, count):
        assert split_spec_from_dict({"mode": "parts", "count": count}) == PartsSpec(3)

    @pytest.mark.parametrize("count", [2.9, "2.5"])
    def test_parts_fractional_count(self, count):
        with pytest.raises(InvalidSplitSpecError, match="whole number"):
            split_spec_from_dict({"mode": "parts", "count": count})

    def test_bad_value(self):
        with pytest.raises(InvalidSplitSpecError, match="Invalid value"):
            split_spec_from_dict({"mode": "size", "target_mb": "lots"})

    def test_unknown_mode(self):
        with pytest.raises(InvalidSplitSpecError, match="Unknown split mode"):
            split_spec_from_dict({"mode": "scenes"})


class TestEncodingFromDict:
    def test_default_is_stream_copy(self):
        assert encoding_from_dict(None) == StreamCopy()
        assert encoding_from_dict({"mode": "copy"}) == StreamCopy()

    def test_reencode_defaults(self):
        policy = encoding_from_dict({"mode": "reencode"})
        assert policy == ReEncode()
        assert policy.video_crf == 23
        assert policy.audio_bitrate == "128k"

    def test_reencode_custom(self):
        policy = encoding_from_dict({"mode": "reencode", "video_crf": "18", "audio_bitrate": "192k"})
        assert policy.video_crf == 18
        assert policy.audio_bitrate == "192k"

    def test_reencode_unknown_option(self):
        with pytest.raises(InvalidSplitSpecError, match="re-encode"):
            encoding_from_dict({"mode": "reencode", "bogus": 1})

    def test_unknown_mode(self):
        with pytest.raises(InvalidSplitSpecError, match="Unknown encoding mode"):
            encoding_from_dict({"mode": "lossless"})


class TestSplitManifest:
    def test_minimal(self):
        m = SplitManifest(input=Path("in.mp4"), output_dir=Path("parts"))
        assert m.version == "1"
        assert m.split == PartsSpec(2)
        assert m.encoding == StreamCopy()
        assert m.overlap_ratio == 0.0
        assert m.source_name is None


class TestLoadManifest:
    def test_load_sample(self, sample_manifest_path: Path):
        m = load_manifest(sample_manifest_path)
        assert m.version == "1"
        assert m.input == Path("video.mp4")
        assert m.output_dir == Path("parts")
        assert m.split == DurationSpec(30.0)
        assert m.encoding == ReEncode(video_crf=20, audio_bitrate="192k")

    def test_default_output_dir(self, tmp_path: Path):
        path = tmp_path / "m.json"
        path.write_text(json.dumps({"input": "/media/talk.mkv"}))
        m = load_manifest(path)
        assert m.output_dir == Path("/media/talk_parts")
        assert m.split == PartsSpec(2)

    def test_load_invalid_json(self, tmp_path: Path):
        bad = tmp_path / "bad.json"
        bad.write_text("not json")
        with pytest.raises(json.JSONDecodeError):
            load_manifest(bad)

    def test_load_missing_fields(self, tmp_path: Path):
        incomplete = tmp_path / "incomplete.json"
        incomplete.write_text('{"version": "1"}')
        with pytest.raises(ValueError, match="must contain"):
            load_manifest(incomplete)

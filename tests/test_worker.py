"""Tests for the rendition worker entry point."""

from unittest import mock

import pytest

from c2pa_worker import worker
from c2pa_worker.errors import SigningError, SourceCorruptError
from c2pa_worker.signing import SignedAsset
from c2pa_worker.worker import Rendition, Source, process


class FakeSigner:
    """Records sign() calls and returns a fixed signed asset."""

    def __init__(self, error=None):
        self.calls = []
        self.error = error

    def __call__(self, asset, manifest, use_local_signer=False, config=None):
        self.calls.append({"asset": asset, "manifest": manifest, "use_local_signer": use_local_signer})
        if self.error:
            raise self.error
        return SignedAsset(buffer=b"SIGNED:" + asset.buffer[:4], manifest=b"m")


@pytest.fixture
def signer(monkeypatch):
    fake = FakeSigner()
    monkeypatch.setattr("c2pa_worker.signing.sign", fake)
    return fake


@pytest.fixture
def no_metadata(monkeypatch):
    def read(path, mime_type):
        raise ValueError("no JUMBF data found")
    monkeypatch.setattr("c2pa_worker.manifest.read_c2pa_metadata", read)


@pytest.fixture
def with_metadata(monkeypatch, store):
    monkeypatch.setattr("c2pa_worker.manifest.read_c2pa_metadata", lambda path, mime_type: store)
    return store


@pytest.fixture
def propagate(monkeypatch):
    fake = mock.MagicMock(return_value={"active_manifest": "urn:uuid:new"})
    monkeypatch.setattr("c2pa_worker.propagation.add_asset_manifest_to_rendition", fake)
    return fake


def run(source_file, tmp_path, config, instructions=None, **source_kwargs):
    source = Source(path=source_file, name=source_file.name, **source_kwargs)
    rendition = Rendition(path=tmp_path / "rendition.jpg", name="thumb.jpg",
                          instructions=instructions or {})
    return process(source, rendition, config), rendition


class TestValidation:
    """Test cases for source validation."""

    def test_empty_source_is_fatal(self, tmp_path, config, signer):
        empty = tmp_path / "empty.jpg"
        empty.write_bytes(b"")

        with pytest.raises(SourceCorruptError, match="empty"):
            run(empty, tmp_path, config)

        assert not (tmp_path / "rendition.jpg").exists()
        assert signer.calls == []

    def test_missing_source_propagates(self, tmp_path, config, signer):
        with pytest.raises(FileNotFoundError):
            run(tmp_path / "missing.jpg", tmp_path, config)


class TestSigning:
    """Test cases for the sign-or-copy stage."""

    def test_end_to_end_defaults(self, source_file, tmp_path, config, signer, no_metadata, propagate):
        result, rendition = run(source_file, tmp_path, config)

        assert result.signed is True
        assert result.metadata_found is False
        assert result.propagated_manifest is None
        assert rendition.path.read_bytes() == b"SIGNED:" + source_file.read_bytes()[:4]

        call = signer.calls[0]
        assert call["use_local_signer"] is True
        assert call["asset"].mime_type == "image/jpeg"
        assert call["manifest"]["title"] == "source.jpg"
        propagate.assert_not_called()
        assert not config.scratch_dir.exists()

    def test_declared_mime_type(self, source_file, tmp_path, config, signer, no_metadata):
        run(source_file, tmp_path, config, mime_type="image/png")
        assert signer.calls[0]["asset"].mime_type == "image/png"
        assert signer.calls[0]["manifest"]["format"] == "image/png"

    def test_remote_signer_when_disabled(self, source_file, tmp_path, config, signer, no_metadata):
        run(source_file, tmp_path, config, {"useLocalSigner": False})
        assert signer.calls[0]["use_local_signer"] is False

    def test_default_title(self, source_file, tmp_path, config, signer, no_metadata):
        source = Source(path=source_file)
        process(source, Rendition(path=tmp_path / "r.jpg"), config)
        assert signer.calls[0]["manifest"]["title"] == "signed-asset"

    @pytest.mark.parametrize("error", [SigningError("bad key"), RuntimeError("library crashed")])
    def test_signing_failure_copies_source(self, source_file, tmp_path, config, monkeypatch,
                                           no_metadata, error):
        monkeypatch.setattr("c2pa_worker.signing.sign", FakeSigner(error))

        result, rendition = run(source_file, tmp_path, config)

        assert result.signed is False
        assert rendition.path.read_bytes() == source_file.read_bytes()

    def test_write_failure_copies_source(self, source_file, tmp_path, config, signer,
                                         no_metadata, monkeypatch):
        real_write = worker.Path.write_bytes

        def failing_write(self, data):
            real_write(self, data[:3])
            raise OSError("disk full")

        monkeypatch.setattr(worker.Path, "write_bytes", failing_write)
        result, rendition = run(source_file, tmp_path, config)

        assert result.signed is False
        assert rendition.path.read_bytes() == source_file.read_bytes()


class TestPropagation:
    """Test cases for the optional source manifest stage."""

    def test_skipped_by_default(self, source_file, tmp_path, config, signer, with_metadata, propagate):
        result, _ = run(source_file, tmp_path, config)
        assert result.metadata_found is True
        propagate.assert_not_called()

    @pytest.mark.parametrize("flag", [False, "true", 1, None])
    def test_only_literal_true_enables(self, source_file, tmp_path, config, signer,
                                       with_metadata, propagate, flag):
        run(source_file, tmp_path, config, {"addSourceManifest": flag})
        propagate.assert_not_called()

    def test_skipped_without_metadata(self, source_file, tmp_path, config, signer,
                                      no_metadata, propagate):
        result, _ = run(source_file, tmp_path, config, {"addSourceManifest": True})
        propagate.assert_not_called()
        assert result.propagated_manifest is None

    def test_propagates_source_manifest(self, source_file, tmp_path, config, signer,
                                        with_metadata, propagate):
        instructions = {
            "addSourceManifest": True,
            "c2paSignParams": {"useInternalTooling": True, "tier": "stage", "cleanUpTmpFiles": True},
        }
        result, rendition = run(source_file, tmp_path, config, instructions)

        assert result.propagated_manifest == {"active_manifest": "urn:uuid:new"}
        metadata, path, name, scratch_dir, sign_params, _ = propagate.call_args.args
        assert metadata == with_metadata
        assert path == rendition.path
        assert name == "thumb.jpg"
        assert scratch_dir == config.scratch_dir
        assert sign_params.use_internal_tooling is True
        assert sign_params.clean_up_tmp_files is True

    def test_default_rendition_name(self, source_file, tmp_path, config, signer,
                                    with_metadata, propagate):
        source = Source(path=source_file, name="source.jpg")
        rendition = Rendition(path=tmp_path / "r.jpg", instructions={"addSourceManifest": True})
        process(source, rendition, config)
        assert propagate.call_args.args[2] == "rendition"

    def test_propagation_after_fallback_copy(self, source_file, tmp_path, config, monkeypatch,
                                             with_metadata, propagate):
        monkeypatch.setattr("c2pa_worker.signing.sign", FakeSigner(SigningError("offline")))
        result, rendition = run(source_file, tmp_path, config, {"addSourceManifest": True})

        assert result.signed is False
        assert rendition.path.read_bytes() == source_file.read_bytes()
        propagate.assert_called_once()

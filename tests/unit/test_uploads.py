"""
Unit tests for studyhub/services/uploads.py
"""

import pytest

from studyhub.services.uploads import MB, UploadRule, check_upload


class TestAccepted:
    @pytest.mark.parametrize("rule,filename,mime,size", [
        (UploadRule.PROFILE_IMAGE, "me.png", "image/png", 200_000),
        (UploadRule.PROFILE_IMAGE, "me.webp", "image/webp", 5 * MB),
        (UploadRule.NOTES, "week1.pptx",
         "application/vnd.openxmlformats-officedocument.presentationml.presentation", 10 * MB),
        (UploadRule.NOTES, "summary.txt", "text/plain; charset=utf-8", 1_000),
        (UploadRule.VIDEO, "lecture.mkv", "video/x-matroska", 400 * MB),
        (UploadRule.VIDEO, "lecture.MOV", "video/quicktime", 10 * MB),
        (UploadRule.PAPER, "2023.pdf", "application/pdf", 100 * MB),
    ])
    def test_accepted(self, rule, filename, mime, size):
        decision = check_upload(rule, filename, mime, size)
        assert decision.accepted is True
        assert decision.reason is None

    def test_rule_by_name(self):
        assert check_upload("paper", "p.pdf", "application/pdf", 10).accepted is True


class TestRejected:
    def test_oversized_profile_image(self):
        decision = check_upload(UploadRule.PROFILE_IMAGE, "me.png", "image/png", 5 * MB + 1)
        assert decision.accepted is False
        assert "5 MB" in decision.reason

    def test_oversized_video(self):
        assert check_upload(UploadRule.VIDEO, "v.mp4", "video/mp4", 500 * MB + 1).accepted is False

    def test_wrong_mime(self):
        decision = check_upload(UploadRule.PAPER, "paper.pdf", "application/msword", 1_000)
        assert decision.accepted is False
        assert "application/msword" in decision.reason

    def test_mime_and_extension_must_agree(self):
        decision = check_upload(UploadRule.PROFILE_IMAGE, "script.exe", "image/png", 1_000)
        assert decision.accepted is False
        assert ".exe" in decision.reason

    def test_empty_file(self):
        assert check_upload(UploadRule.NOTES, "n.txt", "text/plain", 0).accepted is False

    def test_missing_extension(self):
        assert check_upload(UploadRule.NOTES, "notes", "text/plain", 10).accepted is False

    def test_unknown_rule(self):
        with pytest.raises(ValueError):
            check_upload("audio", "a.mp3", "audio/mpeg", 10)

"""
Git Analyzer Unit Tests

GitAnalyzer 클래스의 단위 테스트
"""
from pathlib import Path

import pytest
from git import Repo

from commit_notifier.core.git_analyzer import (
    GitAnalyzer,
    PlaceholderDiffExtractor,
    create_diff_extractor,
    placeholder_diff,
)


class TestGitAnalyzer:
    """GitAnalyzer 테스트 클래스"""

    @pytest.fixture
    def temp_repo(self, tmp_path):
        """테스트용 임시 Git 저장소 생성 (커밋 2개)"""
        repo_dir = tmp_path / "repo"
        repo = Repo.init(repo_dir)
        repo.config_writer().set_value("user", "name", "Test User").release()
        repo.config_writer().set_value("user", "email", "test@example.com").release()

        (repo_dir / "a.py").write_text("def foo():\n    return 1\n")
        (repo_dir / "old.txt").write_text("obsolete\n")
        repo.index.add([str(repo_dir / "a.py"), str(repo_dir / "old.txt")])
        first = repo.index.commit("add a.py")

        (repo_dir / "a.py").write_text("def foo():\n    return 2\n")
        (repo_dir / "lib").mkdir()
        (repo_dir / "lib" / "b.js").write_text("const b = 1;\n")
        repo.index.add([str(repo_dir / "a.py"), str(repo_dir / "lib" / "b.js")])
        repo.index.remove([str(repo_dir / "old.txt")], working_tree=True)
        second = repo.index.commit("modify a.py, add b.js, drop old.txt")

        yield repo, repo_dir, first, second
        repo.close()

    def test_init_valid_repo(self, temp_repo):
        """유효한 저장소로 GitAnalyzer 초기화 테스트"""
        repo, repo_dir, _, _ = temp_repo
        analyzer = GitAnalyzer(str(repo_dir))

        assert analyzer.repo_path == Path(repo_dir).resolve()
        assert analyzer.repo is not None

    def test_init_invalid_repo(self, tmp_path):
        with pytest.raises(ValueError, match="Invalid Git repository"):
            GitAnalyzer(str(tmp_path / "missing"))

    def test_head_commit(self, temp_repo):
        """HEAD 커밋 정보와 변경 파일 (삭제 제외)"""
        _, repo_dir, _, second = temp_repo
        commit = GitAnalyzer(str(repo_dir)).head_commit()

        assert commit.id == second.hexsha
        assert commit.message == "modify a.py, add b.js, drop old.txt"
        assert commit.author_email == "test@example.com"
        assert sorted(f.path for f in commit.changed_files) == ["a.py", "lib/b.js"]

    def test_changed_paths_of_root_commit(self, temp_repo):
        _, repo_dir, first, _ = temp_repo

        paths = GitAnalyzer(str(repo_dir)).changed_paths(first.hexsha)

        assert sorted(paths) == ["a.py", "old.txt"]

    def test_diff_for_file(self, temp_repo):
        """파일 하나의 패치만 반환"""
        _, repo_dir, _, second = temp_repo

        diff = GitAnalyzer(str(repo_dir)).diff_for(second.hexsha, "a.py")

        assert "-    return 1" in diff
        assert "+    return 2" in diff
        assert "b.js" not in diff

    def test_diff_for_whole_commit(self, temp_repo):
        _, repo_dir, _, second = temp_repo

        diff = GitAnalyzer(str(repo_dir)).diff_for(second.hexsha)

        assert "a.py" in diff
        assert "lib/b.js" in diff

    def test_diff_for_unknown_commit_uses_placeholder(self, temp_repo):
        _, repo_dir, _, _ = temp_repo

        diff = GitAnalyzer(str(repo_dir)).diff_for("0" * 40, "a.py")

        assert diff == placeholder_diff("a.py")

    def test_diff_for_untouched_file_uses_placeholder(self, temp_repo):
        """커밋에서 변경되지 않은 파일은 빈 패치 → 대체 텍스트"""
        _, repo_dir, first, _ = temp_repo

        diff = GitAnalyzer(str(repo_dir)).diff_for(first.hexsha, "lib/b.js")

        assert diff == placeholder_diff("lib/b.js")


class TestDiffExtractorFactory:
    """create_diff_extractor 테스트"""

    def test_placeholder_text(self):
        assert placeholder_diff("src/a.py").startswith("// Changes in src/a.py")
        assert "this commit" in placeholder_diff(None)

    def test_none_path(self):
        extractor = create_diff_extractor(None)

        assert isinstance(extractor, PlaceholderDiffExtractor)
        assert extractor.diff_for("abc", "x.py") == placeholder_diff("x.py")

    def test_invalid_path_falls_back(self, tmp_path):
        extractor = create_diff_extractor(str(tmp_path / "nowhere"))

        assert isinstance(extractor, PlaceholderDiffExtractor)

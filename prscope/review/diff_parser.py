from __future__ import annotations


def extract_changed_line_numbers(diff: str) -> list[int]:
    """新文件中被新增（`+`）的行号；inline 评论只能挂在这些行上。"""
    lines = diff.splitlines()
    changed: list[int] = []
    new_line = 0
    old_line = 0
    for line in lines:
        if line.startswith("@@"):
            old_line, new_line = _parse_hunk_header(header=line)
            continue
        if line.startswith("+") and not line.startswith("+++"):
            changed.append(new_line)
            new_line += 1
            continue
        if line.startswith("-") and not line.startswith("---"):
            old_line += 1
            continue
        if line.startswith(" "):
            old_line += 1
            new_line += 1
            continue
    return changed


def _parse_hunk_header(header: str) -> tuple[int, int]:
    # @@ -a,b +c,d @@
    try:
        parts = header.split(" ")
        old_part = parts[1]
        new_part = parts[2]
        old_start = int(old_part.split(",")[0].lstrip("-"))
        new_start = int(new_part.split(",")[0].lstrip("+"))
        return old_start, new_start
    except Exception as exc:
        raise ValueError(f"Invalid diff hunk header: {header}") from exc


def split_unified_diff_by_file(diff: str) -> dict[str, str]:
    """
    把整个 PR 的 unified diff 拆成 {新路径: patch}。

    patch 与 GitHub files API 的 `patch` 字段同格式：从第一个 `@@` 开始。
    没有 hunk 的文件（二进制、纯重命名）不出现在结果里。
    """
    sections: dict[str, list[str]] = {}
    current: list[str] | None = None
    for line in diff.splitlines():
        if line.startswith("diff --git "):
            path = line.rsplit(" b/", 1)[-1]
            current = sections.setdefault(path, [])
            continue
        if current is None:
            continue
        if current or line.startswith("@@"):
            current.append(line)
    return {path: "\n".join(body) for path, body in sections.items() if body}

import json
import re
from datetime import date, datetime
from typing import Any, Callable

from markupsafe import Markup, escape

from adminlist.utilities.DataKlass import DataKlass

PLACEHOLDER = re.compile(r"%([A-Za-z0-9_.]+)%")


def truncate(value: Any, length: int, suffix: str = "...") -> Any:
    """Cut strings longer than ``length`` characters and append ``suffix``; other values pass through."""
    if not isinstance(value, str):
        return value
    if len(value) <= length:
        return value
    return value[:length] + suffix


def format_array_value(value: list) -> Any:
    """
    Collapse a list for display.

    Records become ``"N items"``, file/image metadata (dicts carrying ``url``
    or ``name``) is kept as-is, scalars are joined with ``", "``.
    """
    if not value:
        return value
    first = value[0]
    if isinstance(first, dict) and ("url" in first or "name" in first):
        return value
    if isinstance(first, (dict, DataKlass)) or hasattr(first, "__dict__"):
        return f"{len(value)} items"
    if isinstance(first, (list, tuple)):
        return value
    return ", ".join(str(item) for item in value)


def extract_dot_notation_value(row: Any, path: str) -> Any:
    """Walk ``path`` through nested records, dicts and lists; a missing segment yields ``''``."""
    current = row
    for part in path.split("."):
        if isinstance(current, (list, tuple)):
            if not part.isdigit() or int(part) >= len(current):
                return ""
            current = current[int(part)]
        elif isinstance(current, (dict, DataKlass)):
            current = current.get(part)
        elif current is not None and not isinstance(current, (str, int, float, bool)):
            current = getattr(current, part, None)
        else:
            return ""
        if current is None:
            return ""

    if isinstance(current, list) and current:
        return format_array_value(current)
    return current


def placeholder_value(value: Any) -> str:
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, date):
        return value.strftime("%Y-%m-%d")
    if value is None:
        return ""
    return str(value)


def replace_placeholders(template: str, record: Any) -> str:
    """``"?id=%id%"`` -> ``"?id=7"``; unknown placeholders become empty strings."""
    def replace(match):
        value = extract_dot_notation_value(record, match.group(1))
        if isinstance(value, (list, dict)):
            return ""
        return placeholder_value(value)
    return PLACEHOLDER.sub(replace, template)


def render_attrs(attrs: dict) -> str:
    if not attrs:
        return ""
    return " " + " ".join(f'{escape(k)}="{escape(v)}"' for k, v in attrs.items())


def parse_file_list(value: Any) -> list:
    if isinstance(value, str):
        value = value.strip()
        if not value.startswith("["):
            return []
        try:
            value = json.loads(value)
        except ValueError:
            return []
    if isinstance(value, dict):
        value = [value]
    return list(value) if isinstance(value, list) else []


def file_property(file: Any, name: str):
    if isinstance(file, (dict, DataKlass)):
        return file.get(name)
    return getattr(file, name, None)


def link_formatter(key: str, template: str, attrs: dict = None) -> Callable:
    attrs = dict(attrs or {})

    def formatter(record):
        href = replace_placeholders(template, record)
        text = placeholder_value(extract_dot_notation_value(record, key))
        return Markup(f'<a href="{escape(href)}"{render_attrs(attrs)}>{escape(text)}</a>')
    return formatter


def file_formatter(key: str, options: dict = None) -> Callable:
    options = dict(options or {})
    css_class = options.get("class", "js-file-download")
    target = options.get("target", "_blank")

    def formatter(record):
        output = ""
        for file in parse_file_list(extract_dot_notation_value(record, key)):
            url, name = file_property(file, "url"), file_property(file, "name")
            if url and name:
                output += (f'<a href="{escape(url)}" target="{escape(target)}" '
                           f'class="{escape(css_class)}">{escape(name)}</a><br>')
        return Markup(output)
    return formatter


def image_formatter(key: str, options: dict = None) -> Callable:
    options = dict(options or {})
    size = int(options.get("size", 50))
    css_class = options.get("class", "")
    lightbox = options.get("lightbox", False)
    max_images = options.get("max_images")

    def formatter(record):
        value = extract_dot_notation_value(record, key)
        files = parse_file_list(value)
        if not files:
            return "" if isinstance(value, str) else value

        style = f"width: {size}px; height: {size}px; object-fit: cover;"
        output = '<div style="display: flex; gap: 0.5rem; flex-wrap: wrap;">'
        shown = 0
        for file in files:
            url = file_property(file, "url")
            if not url:
                continue
            if max_images is not None and shown >= int(max_images):
                output += (f'<span class="image-more" style="width: {size}px; height: {size}px;">'
                           f'+{len(files) - shown}</span>')
                break
            img = (f'<img src="{escape(url)}" alt="{escape(file_property(file, "name") or "")}" '
                   f'class="{escape(css_class)}" style="{style}">')
            if lightbox:
                img = f'<a href="{escape(url)}" data-lightbox="{escape(key)}">{img}</a>'
            output += img
            shown += 1
        return Markup(output + "</div>")
    return formatter

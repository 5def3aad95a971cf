"""
JavaScript helper functions for browser automation.

Snippets injected via Runtime.evaluate for element location, form analysis
and live-page diagnostics. Every builder returns a self-contained IIFE whose
result is JSON-serializable (returnByValue).
"""

from __future__ import annotations

import json

# ═══════════════════════════════════════════════════════════════════════════════
# Core DOM helpers
# ═══════════════════════════════════════════════════════════════════════════════

IS_VISIBLE = """
const isVisible = (el) => {
    if (!el || !el.getBoundingClientRect) return false;
    const style = getComputedStyle(el);
    const rect = el.getBoundingClientRect();
    return style.display !== 'none' &&
           style.visibility !== 'hidden' &&
           style.opacity !== '0' &&
           rect.width > 0 &&
           rect.height > 0;
};
"""

IS_ENABLED = """
const isEnabled = (el) => {
    if (!el) return false;
    if (el.disabled) return false;
    if (String(el.getAttribute && el.getAttribute('aria-disabled') || '').toLowerCase() === 'true') return false;
    const fs = el.closest && el.closest('fieldset[disabled]');
    return !fs;
};
"""

CLEAN_TEXT = """
const cleanText = (el, max) => {
    if (!el) return '';
    const raw = el.innerText || el.textContent || el.value || '';
    return String(raw).replace(/\\s+/g, ' ').trim().slice(0, max || 80);
};
"""

# Accepts the same selector grammar Playwright does for the subset we record:
#   css (default), xpath=... or //..., text=... (quoted = exact, bare = case-insensitive substring)
RESOLVE_SELECTOR = """
const resolveAll = (selector) => {
    const sel = String(selector || '').trim();
    if (!sel) return [];
    if (sel.startsWith('xpath=') || sel.startsWith('//') || sel.startsWith('(//')) {
        const expr = sel.startsWith('xpath=') ? sel.slice(6) : sel;
        const out = [];
        const snap = document.evaluate(expr, document, null, XPathResult.ORDERED_NODE_SNAPSHOT_TYPE, null);
        for (let i = 0; i < snap.snapshotLength; i++) {
            const node = snap.snapshotItem(i);
            if (node && node.nodeType === Node.ELEMENT_NODE) out.push(node);
        }
        return out;
    }
    if (sel.startsWith('text=')) {
        let needle = sel.slice(5).trim();
        let exact = false;
        if (needle.length >= 2 && (needle[0] === '"' || needle[0] === "'") && needle[needle.length - 1] === needle[0]) {
            needle = needle.slice(1, -1);
            exact = true;
        }
        const norm = (s) => String(s || '').replace(/\\s+/g, ' ').trim();
        const target = exact ? norm(needle) : norm(needle).toLowerCase();
        const matches = (el) => {
            const t = norm(el.innerText || el.textContent || el.value || '');
            return exact ? t === target : t.toLowerCase().includes(target);
        };
        const all = Array.from(document.querySelectorAll('body *')).filter(matches);
        // Keep the innermost matches only.
        return all.filter(el => !all.some(other => other !== el && el.contains(other)));
    }
    return Array.from(document.querySelectorAll(sel));
};
// First match in document order; a recorded page.click/page.fill targets the same element.
const resolveFirst = (selector) => {
    const all = resolveAll(selector);
    return all[0] || null;
};
"""

GET_SELECTOR = """
const cssEscape = (value) => {
    if (globalThis.CSS && typeof globalThis.CSS.escape === 'function') return globalThis.CSS.escape(String(value));
    return String(value).replace(/[^a-zA-Z0-9_-]/g, (c) => '\\\\' + c);
};
const attrSel = (tag, name, value) => tag + '[' + name + '="' + String(value).replace(/"/g, '\\\\"') + '"]';
const getSelector = (el) => {
    if (!el) return '';
    if (el.id) return '#' + cssEscape(el.id);
    if (el === document.body) return 'body';
    const path = [];
    let node = el;
    while (node && node.nodeType === Node.ELEMENT_NODE && node !== document.body) {
        let selector = node.tagName.toLowerCase();
        if (node.id) {
            path.unshift('#' + cssEscape(node.id));
            break;
        }
        const siblings = node.parentNode ? Array.from(node.parentNode.children).filter(c => c.tagName === node.tagName) : [];
        if (siblings.length > 1) selector += ':nth-of-type(' + (siblings.indexOf(node) + 1) + ')';
        path.unshift(selector);
        node = node.parentNode;
    }
    return path.join(' > ');
};
const candidateSelectors = (el) => {
    const tag = el.tagName.toLowerCase();
    const out = [];
    const push = (s) => { if (s && !out.includes(s)) out.push(s); };
    if (el.id) push('#' + cssEscape(el.id));
    const testId = el.getAttribute('data-testid');
    if (testId) push(attrSel('', 'data-testid', testId));
    const name = el.getAttribute('name');
    if (name) push(attrSel(tag, 'name', name));
    const placeholder = el.getAttribute('placeholder');
    if (placeholder) push(attrSel(tag, 'placeholder', placeholder));
    const aria = el.getAttribute('aria-label');
    if (aria) push(attrSel(tag, 'aria-label', aria));
    const type = el.getAttribute('type');
    if (type && (tag === 'input' || tag === 'button')) push(attrSel(tag, 'type', type));
    if (tag === 'button' || tag === 'a' || el.getAttribute('role') === 'button') {
        const text = cleanText(el, 60);
        if (text) push('text=' + JSON.stringify(text));
    }
    push(getSelector(el));
    return out;
};
"""

LABEL_FOR = """
const labelFor = (el) => {
    let text = '';
    if (el.id) {
        const lbl = document.querySelector('label[for="' + String(el.id).replace(/"/g, '\\\\"') + '"]');
        if (lbl) text = lbl.textContent || '';
    }
    if (!text) {
        const wrap = el.closest('label');
        if (wrap) text = wrap.textContent || '';
    }
    if (!text) text = el.getAttribute('aria-label') || '';
    return String(text).replace(/\\s+/g, ' ').trim().slice(0, 80);
};
"""

DESCRIBE = """
const describe = (el) => {
    const tag = el.tagName.toLowerCase();
    const info = {
        tag: tag,
        text: cleanText(el, 60),
        selectors: candidateSelectors(el),
        visible: isVisible(el),
    };
    for (const attr of ['id', 'name', 'type', 'placeholder', 'aria-label', 'role', 'href']) {
        const v = el.getAttribute(attr);
        if (v) info[attr] = String(v).slice(0, 120);
    }
    if (tag === 'input' || tag === 'textarea' || tag === 'select') {
        info.label = labelFor(el);
        info.required = !!el.required;
    }
    return info;
};
"""

CLICKABLE_QUERY = (
    'a[href], button, input[type="submit"], input[type="button"], input[type="reset"], '
    '[role="button"], [role="link"], [onclick], summary, label[for]'
)
FILLABLE_QUERY = (
    'input:not([type="hidden"]):not([type="submit"]):not([type="button"]):not([type="reset"])'
    ':not([type="checkbox"]):not([type="radio"]):not([type="image"]), textarea, select, [contenteditable="true"]'
)

CORE_HELPERS = IS_VISIBLE + IS_ENABLED + CLEAN_TEXT + RESOLVE_SELECTOR
ELEMENT_HELPERS = CORE_HELPERS + GET_SELECTOR + LABEL_FOR + DESCRIBE


def build_js_with_helpers(helpers: str, body: str) -> str:
    """Wrap helpers and body into a single IIFE."""
    return f"""
(() => {{
    {helpers}
    {body}
}})()
"""


# ═══════════════════════════════════════════════════════════════════════════════
# Builders
# ═══════════════════════════════════════════════════════════════════════════════


def probe_js(selector: str) -> str:
    """State of the first element matching selector: found/visible/enabled/tag."""
    return build_js_with_helpers(
        CORE_HELPERS,
        f"""
    const el = resolveFirst({json.dumps(selector)});
    if (!el) return {{ found: false, visible: false, enabled: false }};
    return {{
        found: true,
        visible: isVisible(el),
        enabled: isEnabled(el),
        tag: el.tagName.toLowerCase(),
        editable: el.isContentEditable || ['input', 'textarea', 'select'].includes(el.tagName.toLowerCase()),
    }};
""",
    )


def scroll_into_view_js(selector: str) -> str:
    """Scroll the element into view and return its viewport bounds."""
    return build_js_with_helpers(
        CORE_HELPERS,
        f"""
    const el = resolveFirst({json.dumps(selector)});
    if (!el) return null;
    el.scrollIntoView({{ block: 'center', inline: 'center', behavior: 'instant' }});
    const r = el.getBoundingClientRect();
    return {{ x: r.x, y: r.y, width: r.width, height: r.height }};
""",
    )


def focus_and_clear_js(selector: str) -> str:
    return build_js_with_helpers(
        CORE_HELPERS,
        f"""
    const el = resolveFirst({json.dumps(selector)});
    if (!el) return false;
    el.scrollIntoView({{ block: 'center', behavior: 'instant' }});
    el.focus();
    if (el.isContentEditable) {{
        el.textContent = '';
    }} else if ('value' in el) {{
        if (typeof el.select === 'function') el.select();
        el.value = '';
    }}
    el.dispatchEvent(new Event('input', {{ bubbles: true }}));
    return document.activeElement === el || el.contains(document.activeElement);
""",
    )


def read_value_js(selector: str) -> str:
    return build_js_with_helpers(
        CORE_HELPERS,
        f"""
    const el = resolveFirst({json.dumps(selector)});
    if (!el) return null;
    if (el.isContentEditable) return el.textContent;
    return 'value' in el ? String(el.value) : null;
""",
    )


def set_value_js(selector: str, text: str) -> str:
    """Set value through the native setter so framework-controlled inputs notice it."""
    return build_js_with_helpers(
        CORE_HELPERS,
        f"""
    const el = resolveFirst({json.dumps(selector)});
    if (!el) return null;
    const value = {json.dumps(text)};
    if (el.isContentEditable) {{
        el.textContent = value;
    }} else {{
        const proto = Object.getPrototypeOf(el);
        const desc = Object.getOwnPropertyDescriptor(proto, 'value');
        if (desc && desc.set) desc.set.call(el, value); else el.value = value;
    }}
    el.dispatchEvent(new Event('input', {{ bubbles: true }}));
    el.dispatchEvent(new Event('change', {{ bubbles: true }}));
    return el.isContentEditable ? el.textContent : String(el.value);
""",
    )


def focused_editable_js() -> str:
    return build_js_with_helpers(
        CORE_HELPERS,
        """
    const el = document.activeElement;
    if (!el || el === document.body) return false;
    const tag = el.tagName.toLowerCase();
    return el.isContentEditable || tag === 'input' || tag === 'textarea';
""",
    )


def collect_elements_js(kind: str, limit: int = 40) -> str:
    """Describe every structurally plausible element of a kind (clickable|fillable)."""
    query = CLICKABLE_QUERY if kind == "clickable" else FILLABLE_QUERY
    return build_js_with_helpers(
        ELEMENT_HELPERS,
        f"""
    const els = Array.from(document.querySelectorAll({json.dumps(query)}));
    const visibleFirst = els.filter(isVisible).concat(els.filter(el => !isVisible(el)));
    return visibleFirst.slice(0, {int(limit)}).map(describe);
""",
    )


def inspect_js(element_type: str) -> str:
    """Structured description of forms, inputs and buttons on the page."""
    return build_js_with_helpers(
        ELEMENT_HELPERS,
        f"""
    const kind = {json.dumps(element_type)};
    const out = {{ url: location.href, title: document.title }};
    if (kind === 'forms' || kind === 'all') {{
        out.forms = Array.from(document.forms).map((form, idx) => {{
            const fields = Array.from(form.querySelectorAll({json.dumps(FILLABLE_QUERY)})).filter(isVisible);
            const submit = form.querySelector('button[type="submit"], input[type="submit"], button:not([type])');
            return {{
                index: idx,
                id: form.id || null,
                action: form.getAttribute('action') || null,
                method: (form.getAttribute('method') || 'GET').toUpperCase(),
                selectors: candidateSelectors(form),
                fields: fields.map(describe),
                submitButton: submit ? describe(submit) : null,
            }};
        }});
    }}
    if (kind === 'inputs' || kind === 'all') {{
        out.inputs = Array.from(document.querySelectorAll({json.dumps(FILLABLE_QUERY)})).filter(isVisible).slice(0, 60).map(describe);
    }}
    if (kind === 'buttons' || kind === 'all') {{
        out.buttons = Array.from(document.querySelectorAll(
            'button, input[type="submit"], input[type="button"], [role="button"]'
        )).filter(isVisible).slice(0, 60).map(describe);
    }}
    return out;
""",
    )

"""
In-page scripts.

Every DOM query the auditor performs is one of the named expressions
below, passed to ``page.evaluate``. Scripts only collect raw measurements;
decisions (tolerances, caps, similarity, heuristics) are taken in Python so
they can be exercised without a browser.

Elements handed back to Python are stamped with a ``data-a11y-ref``
attribute so later scripts can address them again. The attribute is
stripped from serialized markup.
"""

REF_ATTRIBUTE = "data-a11y-ref"

INTERACTIVE_SELECTOR = (
    'a, button, input, select, textarea, [role="button"], [role="link"], '
    '[tabindex]:not([tabindex="-1"])'
)

# Shared helpers, inlined into the scripts that need them.
_HELPERS = r"""
const __isVisible = (el) => {
  const style = window.getComputedStyle(el);
  if (style.display === 'none' || style.visibility === 'hidden' || style.opacity === '0') return false;
  const r = el.getBoundingClientRect();
  return r.width > 0 && r.height > 0;
};
const __selectorPath = (el) => {
  if (el.id) return '#' + CSS.escape(el.id);
  const parts = [];
  let node = el;
  while (node && node.nodeType === 1 && node !== document.documentElement) {
    if (node.id) { parts.unshift('#' + CSS.escape(node.id)); break; }
    let part = node.tagName.toLowerCase();
    const classes = Array.from(node.classList)
      .filter(c => !/^(active|focus|hover|js-|is-)/.test(c))
      .slice(0, 2);
    if (classes.length) part += '.' + classes.map(c => CSS.escape(c)).join('.');
    const parent = node.parentElement;
    if (parent) {
      const same = Array.from(parent.children).filter(c => c.tagName === node.tagName);
      if (same.length > 1) part += ':nth-of-type(' + (same.indexOf(node) + 1) + ')';
    }
    parts.unshift(part);
    node = parent;
  }
  return parts.join(' > ');
};
const __stamp = (el) => {
  if (!el.hasAttribute('data-a11y-ref')) {
    window.__a11yRefSeq = (window.__a11yRefSeq || 0) + 1;
    el.setAttribute('data-a11y-ref', 'r' + window.__a11yRefSeq);
  }
  return el.getAttribute('data-a11y-ref');
};
const __normalize = (s) => (s || '')
  .replace(/\sdata-a11y-ref="[^"]*"/g, '')
  .replace(/\s+/g, ' ')
  .replace(/>\s+</g, '><')
  .trim();
const __markup = (el) => el.outerHTML.replace(/\sdata-a11y-ref="[^"]*"/g, '').slice(0, 1000);
const __rect = (el) => {
  const r = el.getBoundingClientRect();
  return {
    x: r.x, y: r.y, width: r.width, height: r.height,
    docX: r.x + window.scrollX, docY: r.y + window.scrollY,
  };
};
const __describe = (el) => {
  const selector = __selectorPath(el);
  const hints = [selector];
  const tag = el.tagName.toLowerCase();
  const classes = Array.from(el.classList);
  if (!el.id && classes.length) hints.push(tag + '.' + classes.slice(0, 2).map(c => CSS.escape(c)).join('.'));
  return {
    ref: __stamp(el),
    tag,
    id: el.id || null,
    classes,
    selector,
    hints,
    markup: __markup(el),
    text: (el.textContent || '').trim().replace(/\s+/g, ' ').slice(0, 100),
    rect: __rect(el),
    visible: __isVisible(el),
    childCount: el.children.length,
  };
};
const __byRef = (ref) => document.querySelector('[data-a11y-ref="' + ref + '"]');
const __viewport = () => ({ width: window.innerWidth, height: window.innerHeight });
"""


def _script(args: str, body: str) -> str:
    return "(" + args + ") => {" + _HELPERS + body + "}"


# ---------------------------------------------------------------------------
# Page state
# ---------------------------------------------------------------------------

READY_STATE = "() => document.readyState"

SET_ZOOM = """(factor) => {
  const root = document.documentElement;
  const previous = root.style.zoom || '';
  root.style.zoom = String(factor);
  return previous;
}"""

RESTORE_ZOOM = """(previous) => {
  document.documentElement.style.zoom = previous || '';
}"""

INJECT_STYLE = """({id, css}) => {
  let el = document.getElementById(id);
  if (!el) {
    el = document.createElement('style');
    el.id = id;
    (document.head || document.documentElement).appendChild(el);
  }
  el.textContent = css;
}"""

REMOVE_STYLE = """(id) => {
  const el = document.getElementById(id);
  if (el) el.remove();
}"""

SAVE_SCROLL = "() => ({ x: window.scrollX, y: window.scrollY })"

RESET_FOCUS = """({x, y}) => {
  const el = document.activeElement;
  if (el && el !== document.body && typeof el.blur === 'function') el.blur();
  window.scrollTo(x, y);
}"""

# ---------------------------------------------------------------------------
# Layout probe
# ---------------------------------------------------------------------------

MEASURE_OVERFLOW = _script(
    "{tolerance, limit}",
    """
  const candidates = [];
  const host = document.body;
  const elements = host ? host.querySelectorAll('*') : [];
  for (const el of elements) {
    if (candidates.length >= limit) break;
    if (!__isVisible(el)) continue;
    if (el.scrollWidth > el.clientWidth + tolerance || el.scrollHeight > el.clientHeight + tolerance) {
      const d = __describe(el);
      d.scrollWidth = el.scrollWidth;
      d.clientWidth = el.clientWidth;
      d.scrollHeight = el.scrollHeight;
      d.clientHeight = el.clientHeight;
      candidates.push(d);
    }
  }
  const root = document.documentElement;
  return {
    scrollWidth: root.scrollWidth,
    clientWidth: root.clientWidth,
    scrollHeight: root.scrollHeight,
    clientHeight: root.clientHeight,
    candidates,
  };
""",
)

SAMPLE_MOTION = _script(
    "{limit}",
    """
  const moving = [];
  const host = document.body;
  const elements = host ? Array.from(host.querySelectorAll('*')).slice(0, limit) : [];
  for (const el of elements) {
    const style = window.getComputedStyle(el);
    const animation = style.animationName !== 'none' ? style.animationDuration : '0s';
    const transition = style.transitionDuration;
    if (animation === '0s' && /^(0s,?\\s*)+$/.test(transition + ',')) continue;
    const d = __describe(el);
    d.animationDuration = animation;
    d.transitionDuration = transition;
    moving.push(d);
  }
  return moving;
""",
)

# ---------------------------------------------------------------------------
# Focus walker
# ---------------------------------------------------------------------------

ACTIVE_ELEMENT = _script(
    "",
    """
  const el = document.activeElement;
  if (!el || el === document.body || el === document.documentElement) return null;
  return __describe(el);
""",
)

LIST_INTERACTIVE = _script(
    "{selector, limit}",
    """
  return Array.from(document.querySelectorAll(selector))
    .filter(__isVisible)
    .slice(0, limit)
    .map(__describe);
""",
)

FOCUS_REF = _script(
    "ref",
    """
  const el = __byRef(ref);
  if (!el) return false;
  el.focus();
  return document.activeElement === el;
""",
)

FOCUS_STYLE_PAIR = _script(
    "ref",
    """
  const el = __byRef(ref);
  if (!el) return null;
  const snap = () => {
    const s = window.getComputedStyle(el);
    return {
      outlineStyle: s.outlineStyle,
      outlineWidth: s.outlineWidth,
      outlineColor: s.outlineColor,
      boxShadow: s.boxShadow,
      borderStyle: s.borderStyle,
      borderWidth: s.borderWidth,
      borderColor: s.borderColor,
    };
  };
  if (typeof el.blur === 'function') el.blur();
  const before = snap();
  el.focus();
  const after = snap();
  const focused = document.activeElement === el;
  if (typeof el.blur === 'function') el.blur();
  return { before, after, focused };
""",
)

# ---------------------------------------------------------------------------
# Element locator
# ---------------------------------------------------------------------------

QUERY_CANDIDATES = _script(
    "{selector, limit}",
    """
  let nodes;
  try {
    nodes = document.querySelectorAll(selector);
  } catch (e) {
    return { count: 0, candidates: [], viewport: __viewport(), invalid: true };
  }
  return {
    count: nodes.length,
    candidates: Array.from(nodes).slice(0, limit).map(__describe),
    viewport: __viewport(),
    invalid: false,
  };
""",
)

MATCH_MARKUP = _script(
    "{markup, prefixLength, limit}",
    """
  const matches = [];
  const host = document.body || document.documentElement;
  for (const el of host.querySelectorAll('*')) {
    const normalized = __normalize(el.outerHTML);
    const hit = prefixLength
      ? normalized.slice(0, prefixLength) === markup
      : normalized === markup;
    if (hit) {
      matches.push(__describe(el));
      if (matches.length >= limit) break;
    }
  }
  return { count: matches.length, candidates: matches, viewport: __viewport(), invalid: false };
""",
)

FIRST_INTERACTIVE_DESCENDANT = _script(
    "{ref, selector}",
    """
  const el = __byRef(ref);
  if (!el) return null;
  for (const child of el.querySelectorAll(selector)) {
    if (__isVisible(child)) return __describe(child);
  }
  return null;
""",
)

# ---------------------------------------------------------------------------
# Evidence
# ---------------------------------------------------------------------------

PREPARE_CAPTURE = _script(
    "ref",
    """
  const el = __byRef(ref);
  if (!el) return null;
  el.scrollIntoView({ block: 'center', inline: 'center' });
  el.setAttribute('data-a11y-prev-outline', el.style.outline || '');
  el.setAttribute('data-a11y-prev-offset', el.style.outlineOffset || '');
  el.style.outline = '3px solid #e11d48';
  el.style.outlineOffset = '2px';
  return { rect: __rect(el), viewport: __viewport() };
""",
)

REMOVE_HIGHLIGHT = """(ref) => {
  const el = document.querySelector('[data-a11y-ref="' + ref + '"]');
  if (!el) return;
  el.style.outline = el.getAttribute('data-a11y-prev-outline') || '';
  el.style.outlineOffset = el.getAttribute('data-a11y-prev-offset') || '';
  el.removeAttribute('data-a11y-prev-outline');
  el.removeAttribute('data-a11y-prev-offset');
}"""

# ---------------------------------------------------------------------------
# Structure checks
# ---------------------------------------------------------------------------

LANDMARKS = """() => ({
  main: document.querySelectorAll('main, [role="main"]').length,
  navigation: document.querySelectorAll('nav, [role="navigation"]').length,
  banner: document.querySelectorAll('header, [role="banner"]').length,
  contentinfo: document.querySelectorAll('footer, [role="contentinfo"]').length,
})"""

POSITIVE_TABINDEX = _script(
    "",
    """
  return Array.from(document.querySelectorAll('[tabindex]'))
    .filter(el => parseInt(el.getAttribute('tabindex'), 10) > 0)
    .slice(0, 50)
    .map(el => {
      const d = __describe(el);
      d.tabindex = parseInt(el.getAttribute('tabindex'), 10);
      return d;
    });
""",
)

CSS_REORDERED = _script(
    "{limit}",
    """
  const found = [];
  for (const el of document.querySelectorAll('body *')) {
    if (found.length >= limit) break;
    const parent = el.parentElement;
    if (!parent) continue;
    const display = window.getComputedStyle(parent).display;
    if (!/flex|grid/.test(display)) continue;
    const order = window.getComputedStyle(el).order;
    if (order && order !== '0') {
      const d = __describe(el);
      d.order = parseInt(order, 10);
      found.push(d);
    }
  }
  return found;
""",
)

META_REFRESH = """() => {
  const meta = document.querySelector('meta[http-equiv="refresh" i]');
  return meta ? (meta.getAttribute('content') || '') : null;
}"""

LINK_TEXTS = _script(
    "{limit}",
    """
  return Array.from(document.querySelectorAll('a[href]'))
    .filter(__isVisible)
    .slice(0, limit)
    .map(el => {
      const d = __describe(el);
      const img = el.querySelector('img[alt]');
      d.href = el.getAttribute('href') || '';
      d.ariaLabel = (el.getAttribute('aria-label') || '').trim();
      d.title = (el.getAttribute('title') || '').trim();
      d.imageAlt = img ? (img.getAttribute('alt') || '').trim() : '';
      return d;
    });
""",
)

# ---------------------------------------------------------------------------
# WCAG 2.2 heuristics
# ---------------------------------------------------------------------------

FOCUS_OBSCURED = _script(
    "ref",
    """
  const el = __byRef(ref);
  if (!el) return null;
  el.focus();
  el.scrollIntoView({ block: 'center', inline: 'nearest' });
  const r = el.getBoundingClientRect();
  const cx = r.left + r.width / 2;
  const cy = r.top + r.height / 2;
  const hit = document.elementFromPoint(cx, cy);
  const obscured = !!hit && hit !== el && !el.contains(hit) && !hit.contains(el);
  const blocker = obscured ? __describe(hit) : null;
  if (typeof el.blur === 'function') el.blur();
  return { obscured, blocker };
""",
)

POINTER_DOWN_HANDLERS = _script(
    "{limit}",
    """
  return Array.from(document.querySelectorAll('[onmousedown]:not([onclick]), [onpointerdown]:not([onclick])'))
    .slice(0, limit)
    .map(__describe);
""",
)

# ---------------------------------------------------------------------------
# Navigation consistency
# ---------------------------------------------------------------------------

NAVIGATION_SIGNATURE = """() => Array.from(
  document.querySelectorAll('nav a, [role="navigation"] a')
).map(a => (a.textContent || '').replace(/\\s+/g, ' ').trim()).filter(Boolean)"""

SAME_ORIGIN_LINKS = """(limit) => {
  const seen = new Set();
  const out = [];
  for (const a of document.querySelectorAll('a[href]')) {
    let url;
    try { url = new URL(a.getAttribute('href'), document.baseURI); } catch (e) { continue; }
    if (url.origin !== window.location.origin) continue;
    const raw = a.getAttribute('href');
    if (raw.includes('#') || /logout|download/i.test(raw)) continue;
    url.hash = '';
    const href = url.toString();
    if (href === window.location.href.split('#')[0] || seen.has(href)) continue;
    seen.add(href);
    out.push(href);
    if (out.length >= limit) break;
  }
  return out;
}"""

# ---------------------------------------------------------------------------
# Media and moving content
# ---------------------------------------------------------------------------

MEDIA_ELEMENTS = _script(
    "{limit}",
    """
  const controlRe = /\\b(pause|stop|mute|unmute)\\b/i;
  const pauseControl = Array.from(document.querySelectorAll('button, [role="button"], input[type="button"]'))
    .some(el => controlRe.test((el.textContent || '') + ' ' + (el.getAttribute('aria-label') || '') + ' ' + (el.value || '')));
  const media = Array.from(document.querySelectorAll('audio, video'))
    .slice(0, limit)
    .map(el => {
      const d = __describe(el);
      const around = ((el.parentElement && el.parentElement.textContent) || '') + ' ' +
        ((el.nextElementSibling && el.nextElementSibling.textContent) || '');
      d.kind = el.tagName.toLowerCase();
      d.hasSource = !!(el.getAttribute('src') || el.querySelector('source[src]'));
      d.captionTracks = el.querySelectorAll('track[kind="captions"], track[kind="subtitles"]').length;
      d.describedBy = el.hasAttribute('aria-describedby');
      d.transcriptNearby = /transcript/i.test(around);
      d.autoplay = el.hasAttribute('autoplay');
      d.muted = el.muted || el.hasAttribute('muted');
      d.controls = el.hasAttribute('controls');
      return d;
    });
  return { media, pauseControl };
""",
)

MOVING_CONTENT = _script(
    "{limit}",
    """
  const pauseRe = /\\b(pause|stop|hide)\\b/i;
  const pauseControl = Array.from(document.querySelectorAll('button, [role="button"]'))
    .some(el => pauseRe.test((el.textContent || '') + ' ' + (el.getAttribute('aria-label') || '')));
  const legacy = Array.from(document.querySelectorAll('blink, marquee, [behavior="scroll"], [scrollamount]'))
    .slice(0, limit)
    .map(__describe);
  const animated = [];
  const blinking = [];
  for (const el of document.querySelectorAll('body *')) {
    if (animated.length >= limit && blinking.length >= limit) break;
    const style = window.getComputedStyle(el);
    if (style.animationName && style.animationName !== 'none' && animated.length < limit) {
      const d = __describe(el);
      d.animationDuration = style.animationDuration;
      d.animationIterationCount = style.animationIterationCount;
      animated.push(d);
    }
    if (/blink/.test(style.textDecorationLine || style.textDecoration || '') && blinking.length < limit) {
      blinking.push(__describe(el));
    }
  }
  return { legacy, animated, blinking, pauseControl };
""",
)

# ---------------------------------------------------------------------------
# Predictability
# ---------------------------------------------------------------------------

FOCUS_HANDLERS = _script(
    "{limit}",
    """
  return Array.from(document.querySelectorAll('[onfocus], [onfocusin]'))
    .slice(0, limit)
    .map(el => {
      const d = __describe(el);
      d.handler = (el.getAttribute('onfocus') || '') + ' ' + (el.getAttribute('onfocusin') || '');
      return d;
    });
""",
)

INPUT_HANDLERS = _script(
    "{limit}",
    """
  const controls = Array.from(document.querySelectorAll(
    'select[onchange], input[onchange], input[type="radio"][onclick], input[type="checkbox"][onclick], textarea[onchange]'
  ))
    .slice(0, limit)
    .map(el => {
      const d = __describe(el);
      d.handler = (el.getAttribute('onchange') || '') + ' ' + (el.getAttribute('onclick') || '');
      return d;
    });
  const forms = Array.from(document.querySelectorAll('form'))
    .filter(form => !form.querySelector('button:not([type="button"]):not([type="reset"]), input[type="submit"], input[type="image"]'))
    .filter(form => form.querySelector('[onchange]'))
    .slice(0, limit)
    .map(__describe);
  return { controls, forms };
""",
)

IDENTIFICATION_LABELS = """() => {
  const label = (el) => ((el.getAttribute('aria-label') || el.textContent || el.value || '')
    .replace(/\\s+/g, ' ').trim());
  const search = Array.from(document.querySelectorAll(
    'form[role="search"] button, form[role="search"] input[type="submit"], ' +
    'button[type="submit"][aria-label*="search" i], input[type="submit"][value*="search" i]'
  )).map(label).filter(Boolean);
  const home = Array.from(document.querySelectorAll('a[href]'))
    .filter(a => {
      try {
        const url = new URL(a.getAttribute('href'), document.baseURI);
        return url.origin === window.location.origin && url.pathname === '/' && !url.hash;
      } catch (e) { return false; }
    })
    .filter(a => !a.querySelector('img'))
    .map(label).filter(Boolean);
  return { search, home };
}"""

# ---------------------------------------------------------------------------
# Page content
# ---------------------------------------------------------------------------

ORIENTATION_RULES = """(limit) => {
  const meta = document.querySelector('meta[name="viewport"]');
  const rules = [];
  const visit = (list) => {
    for (const rule of list) {
      if (rules.length >= limit) return;
      if (rule.media && /orientation/i.test(rule.media.mediaText || '')) {
        rules.push({ media: rule.media.mediaText, css: (rule.cssText || '').slice(0, 500) });
      } else if (rule.cssRules) {
        visit(rule.cssRules);
      }
    }
  };
  for (const sheet of document.styleSheets) {
    let list;
    try { list = sheet.cssRules; } catch (e) { continue; }
    if (list) visit(list);
  }
  return { viewport: meta ? (meta.getAttribute('content') || '') : null, rules };
}"""

STATUS_REGIONS = """() => ({
  roles: document.querySelectorAll('[role="status"], [role="alert"], [role="log"], [role="progressbar"]').length,
  live: document.querySelectorAll('[aria-live]:not([aria-live="off"])').length,
  output: document.querySelectorAll('output').length,
})"""

NAVIGATION_METHODS = """() => {
  const significant = (nodes) => Array.from(nodes)
    .some(nav => nav.querySelectorAll('a[href]').length >= 3);
  return {
    search: document.querySelectorAll(
      'input[type="search"], input[name*="search" i], input[placeholder*="search" i], ' +
      'input[aria-label*="search" i], form[role="search"], form[action*="search"]'
    ).length > 0,
    sitemap: Array.from(document.querySelectorAll('a[href*="sitemap" i], a[href*="site-map" i]'))
      .some(a => /site\\s*map/i.test(a.textContent || '')),
    breadcrumbs: document.querySelectorAll(
      '[aria-label*="breadcrumb" i], .breadcrumb, .breadcrumbs, [typeof="BreadcrumbList"]'
    ).length > 0,
    menu: significant(document.querySelectorAll('nav, [role="navigation"]')),
    contents: document.querySelectorAll(
      '[id*="toc" i], [class*="table-of-contents" i], [aria-label*="table of contents" i]'
    ).length > 0,
    footer: significant(document.querySelectorAll('footer nav, footer [role="navigation"]')),
  };
}"""

# ---------------------------------------------------------------------------
# Input modalities
# ---------------------------------------------------------------------------

INLINE_HANDLER_SOURCE = """(limit) => {
  const attrs = ['onkeydown', 'onkeyup', 'onkeypress', 'ontouchstart', 'ontouchmove', 'ongesturestart'];
  const parts = Array.from(document.scripts)
    .filter(s => !s.src)
    .map(s => s.textContent || '');
  for (const el of document.querySelectorAll(attrs.map(a => '[' + a + ']').join(', '))) {
    for (const a of attrs) if (el.hasAttribute(a)) parts.push(el.getAttribute(a));
  }
  return parts.join('\\n').slice(0, limit);
}"""

DRAGGABLE_ELEMENTS = _script(
    "{limit}",
    """
  return Array.from(document.querySelectorAll('[draggable="true"]'))
    .filter(__isVisible)
    .filter(el => !el.querySelector('button, [role="button"]'))
    .slice(0, limit)
    .map(__describe);
""",
)

# ---------------------------------------------------------------------------
# Authentication fields
# ---------------------------------------------------------------------------

AUTH_FIELDS = _script(
    "{limit}",
    """
  return Array.from(document.querySelectorAll('input[type="password"]'))
    .slice(0, limit)
    .map(el => {
      const d = __describe(el);
      const scope = el.closest('form') || el.parentElement || document.body;
      const user = scope.querySelector(
        'input[type="email"], input[autocomplete="username"], input[name*="user" i], ' +
        'input[name*="login" i], input[name*="email" i], input[id*="user" i]'
      );
      d.autocomplete = (el.getAttribute('autocomplete') || '').trim().toLowerCase();
      d.usernameAutocomplete = user ? (user.getAttribute('autocomplete') || '').trim().toLowerCase() : null;
      d.pasteBlocked = /return\\s+false|preventDefault/.test(el.getAttribute('onpaste') || '');
      return d;
    });
""",
)

# ---------------------------------------------------------------------------
# Rule engine (axe-core)
# ---------------------------------------------------------------------------

AXE_PRESENT = "() => typeof window.axe !== 'undefined'"

AXE_RUN = "async (options) => await window.axe.run(document, options)"

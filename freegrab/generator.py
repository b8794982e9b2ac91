"""Static page generator for the free games showcase."""
from __future__ import annotations

import logging
import re
import shutil
from datetime import datetime, timedelta
from html import escape as html_escape
from pathlib import Path
from typing import List, Sequence

from .config import Settings, load_settings
from .models import NormalizedItem, Promotions
from .utils import (
    ensure_directory,
    format_display_time,
    isoformat_utc,
    offset_label,
    script_json,
    utcnow,
)

LOGGER = logging.getLogger(__name__)

SLIDE_DURATION_MS = 8000
PLACEHOLDER_DAYS = 7
PLACEHOLDER_TITLE = "暂无活动"
PLACEHOLDER_DESCRIPTION = "请稍后再来查看"

BASE_TEMPLATE = """<!DOCTYPE html>
<html lang="{{ lang }}">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{{ title }}</title>
    <link rel="icon" href="favicon.png" type="image/x-icon">
    <script src="https://cdn.tailwindcss.com"></script>
    <script src="https://cdn.jsdelivr.net/npm/dayjs@1/dayjs.min.js"></script>
    <script src="https://cdn.jsdelivr.net/npm/dayjs@1/plugin/utc.js"></script>
    <style>
        @import url('https://fonts.googleapis.com/css2?family=Noto+Sans+SC:wght@400;700;900&display=swap');
        body { background: #050505; color: white; font-family: 'Noto Sans SC', sans-serif; }
        .hero-mask { background: linear-gradient(to top, #050505 0%, rgba(5,5,5,0.8) 40%, transparent 100%); }
        .glass-btn { background: rgba(255, 255, 255, 0.05); backdrop-filter: blur(10px); border: 1px solid rgba(255,255,255,0.1); }
        .slide-nav-btn { cursor: pointer; opacity: 0.6; transition: all 0.3s; }
        .slide-nav-btn:hover { opacity: 1; }
        .progress-bar { height: 100%; background: white; width: 0%; transition: width linear; }
        .indicator-track { height: 6px; background: rgba(255,255,255,0.2); border-radius: 3px; overflow: hidden; cursor: pointer; transition: all 0.3s; }
        .indicator-active { width: 60px; }
        .indicator-inactive { width: 16px; }
        html { scroll-behavior: smooth; }
        #upcoming { scroll-margin-top: 1rem; }
    </style>
</head>
<body>
{{ content|safe }}
    <script>
{{ script|safe }}
    </script>
</body>
</html>
"""

_PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*(?P<name>lang|title|content\|safe|script\|safe)\s*\}\}")

# Carousel and countdown. Items are injected as ``games`` ahead of this block.
CAROUSEL_SCRIPT = """
        dayjs.extend(window.dayjs_plugin_utc);
        let currentIndex = 0;
        let timerInterval;
        let slideInterval;

        function formatEndTime(value) {
            return dayjs(value).utcOffset(DISPLAY_OFFSET_MINUTES).format('YYYY年MM月DD日 HH:mm:ss');
        }

        function updateSlide(index) {
            const game = games[index];
            const titleEl = document.getElementById('game-title');
            const descEl = document.getElementById('game-desc');
            titleEl.style.opacity = '0';
            descEl.style.opacity = '0';
            setTimeout(() => {
                titleEl.innerText = game.title;
                descEl.innerText = game.description || '';
                titleEl.style.opacity = '1';
                descEl.style.opacity = '1';
            }, 200);

            document.getElementById('claim-btn').href = game.link;
            document.getElementById('end-time-text').innerText = '截止时间: ' + formatEndTime(game.endTime);

            const bgImg = document.getElementById('bg-image');
            bgImg.style.opacity = '0';
            setTimeout(() => {
                bgImg.src = game.imageUrl;
                bgImg.onload = () => { bgImg.style.opacity = '0.9'; };
            }, 300);

            if (games.length > 1) {
                document.querySelectorAll('[id^="indicator-"]').forEach((el, i) => {
                    const isCurrent = i === index;
                    el.className = 'indicator-track ' + (isCurrent ? 'indicator-active' : 'indicator-inactive');
                    const progress = el.querySelector('.progress-bar');
                    progress.style.transition = 'none';
                    progress.style.width = '0%';
                    if (isCurrent) {
                        progress.offsetHeight;
                        progress.style.transition = 'width ' + SLIDE_DURATION + 'ms linear';
                        progress.style.width = '100%';
                    }
                });
            }

            startCountdown(game.endTime);
        }

        function nextSlide() {
            if (games.length <= 1) return;
            currentIndex = (currentIndex + 1) % games.length;
            updateSlide(currentIndex);
            resetSlideTimer();
        }

        function prevSlide() {
            if (games.length <= 1) return;
            currentIndex = (currentIndex - 1 + games.length) % games.length;
            updateSlide(currentIndex);
            resetSlideTimer();
        }

        function goToSlide(index) {
            currentIndex = index;
            updateSlide(currentIndex);
            resetSlideTimer();
        }

        function resetSlideTimer() {
            if (games.length > 1) {
                clearInterval(slideInterval);
                slideInterval = setInterval(nextSlide, SLIDE_DURATION);
            }
        }

        function pad(value) {
            return String(value).padStart(2, '0');
        }

        function startCountdown(endTime) {
            if (timerInterval) clearInterval(timerInterval);
            const target = dayjs(endTime);
            const timerEl = document.getElementById('timer');
            const unit = (label) => '<small class="text-sm md:text-xl ml-1 text-zinc-600">' + label + '</small>';

            const update = () => {
                const diff = target.diff(dayjs());
                if (diff <= 0) {
                    timerEl.innerHTML = "<span class='text-zinc-500 uppercase'>活动已结束</span>";
                    clearInterval(timerInterval);
                    return;
                }
                const d = Math.floor(diff / 86400000);
                const h = Math.floor((diff % 86400000) / 3600000);
                const m = Math.floor((diff % 3600000) / 60000);
                const s = Math.floor((diff % 60000) / 1000);
                timerEl.innerHTML =
                    '<span>' + pad(d) + unit('天') + '</span>' +
                    '<span>' + pad(h) + unit('时') + '</span>' +
                    '<span>' + pad(m) + unit('分') + '</span>' +
                    '<span>' + pad(s) + unit('秒') + '</span>';
            };
            timerInterval = setInterval(update, 1000);
            update();
        }

        updateSlide(0);
        resetSlideTimer();
"""

_PREV_ICON = (
    '<svg xmlns="http://www.w3.org/2000/svg" fill="none" viewBox="0 0 24 24" stroke-width="2" '
    'stroke="currentColor" class="w-10 h-10 md:w-12 md:h-12">'
    '<path stroke-linecap="round" stroke-linejoin="round" d="M15.75 19.5L8.25 12l7.5-7.5" /></svg>'
)
_NEXT_ICON = (
    '<svg xmlns="http://www.w3.org/2000/svg" fill="none" viewBox="0 0 24 24" stroke-width="2" '
    'stroke="currentColor" class="w-10 h-10 md:w-12 md:h-12">'
    '<path stroke-linecap="round" stroke-linejoin="round" d="M8.25 4.5l7.5 7.5-7.5 7.5" /></svg>'
)


def _render_with_base(*, lang: str, title: str, content: str, script: str) -> str:
    values = {
        "lang": html_escape(lang),
        "title": html_escape(title),
        "content|safe": content,
        "script|safe": script,
    }
    # Single pass so rendered item text is never re-scanned for placeholders.
    return _PLACEHOLDER_PATTERN.sub(lambda match: values[match.group("name")], BASE_TEMPLATE)


def placeholder_item(now: datetime) -> NormalizedItem:
    """The hero shown when nothing is free right now."""

    return NormalizedItem(
        title=PLACEHOLDER_TITLE,
        description=PLACEHOLDER_DESCRIPTION,
        image_url="",
        link="#",
        start_time=None,
        end_time=isoformat_utc(now + timedelta(days=PLACEHOLDER_DAYS)),
    )


class SiteGenerator:
    def __init__(
        self,
        output_dir: Path | str = Path("public"),
        settings: Settings | None = None,
        favicon: Path | str | None = None,
    ) -> None:
        self.output_dir = Path(output_dir)
        self.settings = settings or load_settings()
        self.favicon = Path(favicon) if favicon else None

    # ------------------------------------------------------------------
    # Public API

    def build(self, promotions: Promotions, *, now: datetime | None = None) -> Path:
        LOGGER.info("Rendering page to %s", self.output_dir)
        ensure_directory(self.output_dir)
        html = self.render(promotions, now=now)
        target = self.output_dir / "index.html"
        target.write_text(html, encoding="utf-8")
        self._copy_favicon()
        LOGGER.info(
            "Wrote %s with %s hero and %s upcoming items",
            target,
            len(promotions.current),
            len(promotions.upcoming),
        )
        return target

    def render(self, promotions: Promotions, *, now: datetime | None = None) -> str:
        heroes = self.hero_items(promotions, now=now)
        content = "\n".join(
            [
                self._hero_section(heroes),
                self._upcoming_section(promotions.upcoming),
                self._footer(),
            ]
        )
        return _render_with_base(
            lang=self.settings.locale,
            title=self.settings.site_title,
            content=content,
            script=self._script(heroes),
        )

    def hero_items(
        self, promotions: Promotions, *, now: datetime | None = None
    ) -> List[NormalizedItem]:
        if promotions.current:
            return list(promotions.current)
        LOGGER.warning("No current free items; rendering placeholder hero")
        return [placeholder_item(now or utcnow())]

    # ------------------------------------------------------------------
    # Rendering helpers

    def _display_time(self, value: str | None) -> str:
        return format_display_time(value, self.settings.display_offset_hours)

    def _navigation(self, heroes: Sequence[NormalizedItem]) -> str:
        if len(heroes) <= 1:
            return ""
        indicators = []
        for index in range(len(heroes)):
            state = "indicator-active" if index == 0 else "indicator-inactive"
            indicators.append(
                f'<div onclick="goToSlide({index})" class="indicator-track {state}" id="indicator-{index}">'
                f'<div class="progress-bar" id="progress-{index}"></div></div>'
            )
        return "\n".join(
            [
                '<button onclick="prevSlide()" class="absolute left-0 top-1/2 -translate-y-1/2 '
                '-translate-x-12 md:-translate-x-20 p-4 slide-nav-btn text-white/50 hover:text-white '
                f'hidden md:block">{_PREV_ICON}</button>',
                '<button onclick="nextSlide()" class="absolute right-0 top-1/2 -translate-y-1/2 '
                'translate-x-12 md:translate-x-20 p-4 slide-nav-btn text-white/50 hover:text-white '
                f'hidden md:block">{_NEXT_ICON}</button>',
                '<div class="flex justify-center gap-3 mb-8">',
                "\n".join(indicators),
                "</div>",
            ]
        )

    def _hero_section(self, heroes: Sequence[NormalizedItem]) -> str:
        main = heroes[0]
        countdown_units = "".join(
            f'<span>--<small class="text-xs md:text-xl ml-1 text-zinc-600">{unit}</small></span>'
            for unit in ("天", "时", "分", "秒")
        )
        return "\n".join(
            [
                '<section class="relative min-h-screen w-full flex items-center justify-center py-20 overflow-hidden">',
                '<div class="absolute inset-0 -z-10">',
                f'<img id="bg-image" src="{html_escape(main.image_url)}" alt="" '
                'class="w-full h-full object-cover opacity-90 scale-105 transition-opacity duration-700">',
                '<div class="absolute inset-0 hero-mask"></div>',
                "</div>",
                '<div class="text-center px-6 max-w-5xl relative z-10">',
                self._navigation(heroes),
                '<div class="flex flex-wrap justify-center gap-4 mb-8">',
                '<div class="inline-flex items-center gap-2 px-4 py-1.5 bg-blue-600 rounded-full '
                'text-[10px] font-black uppercase tracking-[0.2em]">现在免费</div>',
                '<div class="inline-flex items-center gap-2 px-4 py-1.5 bg-green-600 rounded-full '
                'text-[10px] font-black uppercase tracking-[0.1em]">'
                f'<span id="end-time-text">截止时间: {html_escape(self._display_time(main.end_time))}</span></div>',
                "</div>",
                '<h1 id="game-title" class="text-4xl md:text-8xl lg:text-9xl font-black mb-6 '
                f'tracking-tighter uppercase leading-none transition-all duration-500">{html_escape(main.title)}</h1>',
                '<p id="game-desc" class="text-zinc-400 text-sm md:text-xl mb-8 max-w-3xl mx-auto '
                f'leading-relaxed font-light transition-all duration-500">{html_escape(main.description)}</p>',
                '<div class="glass-btn rounded-3xl p-6 md:p-8 mb-10 inline-block">',
                '<p class="text-zinc-500 text-[10px] uppercase mb-4 tracking-[0.3em]">距离活动结束仅剩</p>',
                '<div id="timer" class="text-2xl md:text-6xl font-black text-blue-500 flex gap-4 '
                f'md:gap-8 justify-center items-baseline">{countdown_units}</div>',
                "</div>",
                '<div class="flex flex-col md:flex-row items-center justify-center gap-4 md:gap-6">',
                f'<a id="claim-btn" href="{html_escape(main.link)}" target="_blank" rel="noopener" '
                'class="w-full md:w-auto bg-blue-600 text-white px-12 py-5 md:px-16 md:py-6 rounded-2xl '
                'font-black text-base md:text-lg hover:bg-blue-500 transition-all">立即领取</a>',
                '<a href="#upcoming" class="w-full md:w-auto glass-btn text-white px-8 py-5 md:px-10 '
                'md:py-6 rounded-2xl font-bold text-sm md:text-base hover:bg-white/10 transition-all">查看预告</a>',
                "</div>",
                "</div>",
                "</section>",
            ]
        )

    def _upcoming_card(self, item: NormalizedItem) -> str:
        start_label = self._display_time(item.start_time)
        zone = offset_label(self.settings.display_offset_hours)
        return "".join(
            [
                '<article class="bg-zinc-900/40 border border-white/5 rounded-3xl overflow-hidden group '
                'hover:border-blue-500/50 transition-all duration-500">',
                '<div class="relative h-44 overflow-hidden">',
                f'<img src="{html_escape(item.image_url)}" alt="{html_escape(item.title)}" loading="lazy" '
                'class="w-full h-full object-cover group-hover:scale-110 transition-transform duration-700">',
                '<div class="absolute top-4 left-4"><span class="px-3 py-1 bg-black/60 rounded-full '
                'text-[10px] font-bold uppercase tracking-widest text-blue-400">下周预告</span></div>',
                "</div>",
                '<div class="p-6">',
                f'<h3 class="font-bold text-lg mb-2 text-zinc-100">{html_escape(item.title)}</h3>',
                '<p class="text-zinc-500 text-xs line-clamp-2 mb-4 leading-relaxed">'
                f"{html_escape(item.description or '')}</p>",
                '<div class="flex items-center justify-between text-[11px] font-mono text-zinc-400">',
                '<span class="uppercase opacity-50">开启时间</span>',
                f"<span>{html_escape(start_label)} ({zone})</span>",
                "</div>",
                "</div>",
                "</article>",
            ]
        )

    def _upcoming_section(self, upcoming: Sequence[NormalizedItem]) -> str:
        cards = [self._upcoming_card(item) for item in upcoming]
        return "\n".join(
            [
                '<section id="upcoming" class="container mx-auto px-6 pt-12 pb-32">',
                '<div class="flex items-center gap-6 mb-16">',
                '<h2 class="text-4xl font-black italic uppercase tracking-tighter">未来预告 / Upcoming</h2>',
                '<div class="h-px flex-1 bg-gradient-to-r from-zinc-800 to-transparent"></div>',
                "</div>",
                '<div class="grid grid-cols-1 md:grid-cols-2 lg:grid-cols-3 gap-10">',
                "\n".join(cards),
                "</div>",
                "</section>",
            ]
        )

    def _footer(self) -> str:
        parts = ['<footer class="py-20 border-t border-white/5 text-center">']
        user = self.settings.github_user
        if user:
            handle = html_escape(user)
            parts.append(
                '<p class="text-zinc-400 text-sm font-bold tracking-widest mb-2">Github '
                f'<a href="https://github.com/{handle}" target="_blank" rel="noopener" '
                f'class="hover:text-blue-400 transition-colors underline">@{handle}</a></p>'
            )
        parts.append(
            '<p class="text-zinc-600 text-[10px] uppercase tracking-[0.2em] opacity-80">'
            "Powered by github action &amp; pages</p>"
        )
        parts.append("</footer>")
        return "\n".join(parts)

    def _script(self, heroes: Sequence[NormalizedItem]) -> str:
        games = script_json([item.to_dict() for item in heroes])
        header = "\n".join(
            [
                f"        const games = {games};",
                f"        const SLIDE_DURATION = {SLIDE_DURATION_MS};",
                f"        const DISPLAY_OFFSET_MINUTES = {self.settings.display_offset_hours * 60};",
            ]
        )
        return header + CAROUSEL_SCRIPT

    def _copy_favicon(self) -> None:
        if self.favicon is None:
            return
        if not self.favicon.exists():
            LOGGER.debug("Favicon %s not found; skipping", self.favicon)
            return
        shutil.copyfile(self.favicon, self.output_dir / "favicon.png")

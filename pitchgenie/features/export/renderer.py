"""HTML to PDF through headless Chromium.

One browser is launched and closed per call; nothing is pooled.
"""
from playwright.async_api import async_playwright

LAUNCH_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]


async def render_pdf(html: str, *, landscape: bool = False, margin: str = "20mm") -> bytes:
    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=True, args=LAUNCH_ARGS)
        try:
            page = await browser.new_page()
            await page.set_content(html, wait_until="networkidle")
            return await page.pdf(
                format="A4",
                landscape=landscape,
                print_background=True,
                margin={"top": margin, "right": margin, "bottom": margin, "left": margin},
                prefer_css_page_size=landscape,
            )
        finally:
            await browser.close()

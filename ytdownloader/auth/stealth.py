"""
Page scripts installed before any site script runs, hiding automation
signals and keeping the sign-in on the password path.
"""

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
)

# Chromium flag that stops Blink from setting navigator.webdriver itself.
AUTOMATION_LAUNCH_ARGS = ("--disable-blink-features=AutomationControlled",)

HIDE_WEBDRIVER_SCRIPT = """
Object.defineProperty(navigator, 'webdriver', {get: () => undefined});
Object.defineProperty(navigator, 'languages', {get: () => ['en-US', 'en']});
if (!window.chrome) {
    window.chrome = {runtime: {}, loadTimes: function() {}, csi: function() {}, app: {}};
}
"""

# With WebAuthn gone the identity provider cannot offer a passkey challenge
# and falls back to the password form.
DISABLE_PASSKEYS_SCRIPT = """
(() => {
    const refuse = () => Promise.reject(
        new DOMException('Passkeys are disabled', 'NotAllowedError'));
    if (navigator.credentials) {
        navigator.credentials.get = refuse;
        navigator.credentials.create = refuse;
    }
    Object.defineProperty(window, 'PublicKeyCredential', {
        get: () => undefined,
        configurable: true,
    });
})();
"""


def build_countermeasures_script() -> str:
    """Returns the combined init script installed on every page of the session."""
    return HIDE_WEBDRIVER_SCRIPT + DISABLE_PASSKEYS_SCRIPT

from __future__ import annotations
import argparse
import logging
from flask import Flask, request, jsonify, redirect, url_for, Response
from markupsafe import escape
from animal_engine.engine import Engine
from animal_engine.gate import PaymentGate, OpenGate, gate_from_env
from animal_engine.negotiate import classify, signals_from_headers, header_value
from animal_engine.normalize import normalize_name
from animal_engine.responses import (
    build_payload, error_payload, resolve_origin,
    cors_headers, json_headers, preflight_headers,
)
from animal_engine.config import API_PATH, PAGE_PATH, ANONYMOUS_NAME, RETRY_SETTLE_SECONDS

log = logging.getLogger(__name__)

app = Flask(__name__)
_engine: Engine | None = None
_gate: PaymentGate = OpenGate()


def init_app(engine: Engine, gate: PaymentGate | None = None) -> Flask:
    """Attach a loaded engine and a payment gate to the module-level app."""
    global _engine, _gate
    _engine = engine
    _gate = gate if gate is not None else gate_from_env()
    return app

# ---------- payment gate ----------
@app.before_request
def payment_gate():
    # Pre-flight is answered without payment so browsers can send the real call
    if request.path != API_PATH or request.method == "OPTIONS":
        return None
    decision = _gate.check(request.method, request.path, request.headers)
    if decision.allowed:
        return None
    log.info("Payment required: %s %s", request.method, request.full_path)
    # Cross-origin callers must be able to read the 402 to tell it from a network failure
    headers = {**decision.headers, **cors_headers(resolve_origin(request.headers))}
    if request.method == "GET" and classify(signals_from_headers(request.headers, request.args)).wants_redirect:
        headers["Content-Type"] = "text/html; charset=utf-8"
        return _payment_page(decision.body or {}), decision.status, headers
    return jsonify(decision.body or {}), decision.status, headers

def _payment_page(body: dict) -> str:
    """Human-readable 402 for an address-bar visit, with a way back to the page."""
    name = normalize_name(request.args.get("name", ANONYMOUS_NAME, type=str))
    offer = (body.get("accepts") or [{}])[0]
    back = escape(url_for("animals_page", name=name))
    return f"""<!doctype html>
<html lang="en"><head><meta charset="utf-8" />
<meta name="viewport" content="width=device-width,initial-scale=1" />
<title>Payment required</title>{_STYLE}</head>
<body><main>
  <h1 style="margin:0">Payment required</h1>
  <p>{escape(str(body.get("error", "")))}</p>
  <p class="small">Price: {escape(str(offer.get("price", "")))} on {escape(str(offer.get("network", "")))}</p>
  <a class="btn" href="{back}">BACK TO YOUR MATCH</a>
</main></body></html>
"""

# ---------- API ----------
def _name_from_body() -> str:
    # A body that does not parse is treated like a missing name
    body = request.get_json(force=True, silent=True)
    name = body.get("name") if isinstance(body, dict) else None
    return name if isinstance(name, str) else ANONYMOUS_NAME

@app.route(API_PATH, methods=["GET", "POST", "OPTIONS"])
def api_animals():
    if request.method == "OPTIONS":
        origin = header_value(request.headers, "Origin") or None
        return Response(status=200, headers=preflight_headers(origin))

    try:
        if request.method == "POST":
            name = _name_from_body()
        else:
            name = request.args.get("name", ANONYMOUS_NAME, type=str)
            verdict = classify(signals_from_headers(request.headers, request.args))
            if verdict.wants_redirect:
                return redirect(url_for("animals_page", name=normalize_name(name)), code=307)

        result = _engine.match(name)  # type: ignore[union-attr]
        payload = build_payload(result, _engine.total_animals)  # type: ignore[union-attr]
        return jsonify(payload), 200, json_headers(resolve_origin(request.headers))
    except Exception as exc:
        log.exception("%s %s error", request.method, API_PATH)
        headers = cors_headers(resolve_origin(request.headers))
        headers["Content-Type"] = "application/json"
        return jsonify(error_payload(exc)), 500, headers

@app.get("/health")
def health():
    ok = _engine is not None and _engine.loaded
    return jsonify({"ok": ok, "animals": _engine.total_animals if ok else 0}), 200 if ok else 503

# ---------- UI ----------
_STYLE = r"""
<style>
:root{ --bg:#ffffff; --ink:#000000; --muted:#555; --danger:#b91c1c; --danger-bg:#fef2f2; }
*{box-sizing:border-box}
html,body{height:100%}
body{
  margin:0; background:var(--bg); color:var(--ink);
  font:16px/1.45 system-ui,-apple-system,Segoe UI,Roboto,Ubuntu,"Helvetica Neue",Arial;
  display:flex; align-items:center; justify-content:center; min-height:100vh;
}
main{ width:100%; max-width:36rem; padding:2rem; display:flex; flex-direction:column; align-items:center; gap:1.5rem }
.btn{
  padding:1rem 3rem; background:var(--ink); color:var(--bg); border:4px solid var(--ink);
  font-weight:700; font-size:1.1rem; cursor:pointer; text-decoration:none;
}
.btn:hover{ background:var(--bg); color:var(--ink) }
.btn:disabled{ opacity:.5; cursor:not-allowed }
input{ border:2px solid var(--ink); padding:.75rem 1.5rem; font-size:1.1rem; width:100% }
.err{ display:none; padding:1rem; border:2px solid #fca5a5; background:var(--danger-bg); color:var(--danger); font-size:.85rem; text-align:center }
.small{ color:var(--muted); font-size:.75rem }
pre{ border:2px solid var(--ink); padding:1rem; font-size:.7rem; white-space:pre-wrap; word-break:break-word; width:100% }
</style>
"""

@app.get("/")
def home():
    html = f"""<!doctype html>
<html lang="en"><head><meta charset="utf-8" />
<meta name="viewport" content="width=device-width,initial-scale=1" />
<title>Guess the Animal</title>{_STYLE}</head>
<body><main>
  <a class="btn" href="{url_for('animals_page')}">LET'S GO</a>
  <div class="small">Pay per match &bull; one animal per name</div>
</main></body></html>
"""
    return Response(html, mimetype="text/html")

@app.get(PAGE_PATH)
def animals_page():
    # The page always asks for JSON itself so it is never redirected back here.
    html = r"""<!doctype html>
<html lang="en"><head><meta charset="utf-8" />
<meta name="viewport" content="width=device-width,initial-scale=1" />
<title>Your Animal Match</title>""" + _STYLE + r"""</head>
<body><main>
  <form id="form" style="display:flex;flex-direction:column;align-items:center;gap:1.5rem;width:100%">
    <input id="name" type="text" placeholder="Enter your name" autocomplete="off" autofocus />
    <button id="go" class="btn" type="submit" disabled>PAY &amp; GET ANIMAL</button>
  </form>
  <div id="err" class="err"></div>
  <section id="result" style="display:none;width:100%">
    <h1 style="margin:0 0 .5rem 0">Your Animal Match</h1>
    <p id="r-name" style="font-weight:600;margin:0"></p>
    <p id="r-desc" style="font-size:.9rem"></p>
    <p class="small">Similarity score (lower is closer): <b id="r-score"></b></p>
    <p class="small">Based on name: <b id="r-orig"></b></p>
    <p class="small" id="r-meta"></p>
    <pre id="raw"></pre>
  </section>
</main>
<script>
const API = "__API__", SETTLE_MS = __SETTLE__;
const $ = (sel) => document.querySelector(sel);
const nameIn = $("#name"), go = $("#go"), err = $("#err");

function showError(msg){ err.textContent = msg; err.style.display = "block"; }
function clearError(){ err.style.display = "none"; }
function setLoading(on){ go.disabled = on || !nameIn.value.trim(); go.textContent = on ? "LOADING..." : "PAY & GET ANIMAL"; }

function render(data){
  $("#form").style.display = "none";
  $("#r-name").textContent = data.animal.name;
  $("#r-desc").textContent = data.animal.description;
  $("#r-score").textContent = data.animal.similarityScore;
  $("#r-orig").textContent = data.originalName;
  $("#r-meta").textContent = `Chosen from ${data.closestMatches} closest animals. Total in database: ${data.totalAnimals}.`;
  $("#raw").textContent = JSON.stringify(data, null, 2);
  $("#result").style.display = "block";
}

async function fetchAnimal(name, isRetry){
  if(!name){ showError("Please enter your name"); return; }
  setLoading(true); clearError();
  const params = new URLSearchParams({ name });
  try{
    const resp = await fetch(`${API}?${params}&format=json`, {
      method: "GET", credentials: "include", cache: "no-store",
      headers: { "Accept": "application/json" },
    });
    if(resp.status === 402){
      if(!isRetry){
        // Hand over to the payment gate; it navigates back here once paid
        window.location.href = `${API}?${params}`;
        return;
      }
      showError("Payment required: the payment did not go through. Please try again.");
      return;
    }
    if(!resp.ok){
      const text = await resp.text();
      showError(`Server error ${resp.status}: ${text || resp.statusText}`);
      return;
    }
    const ctype = resp.headers.get("content-type") || "";
    if(!ctype.includes("application/json")){
      showError(`Unexpected response format. Expected JSON but got ${ctype || "unknown"}.`);
      return;
    }
    render(await resp.json());
  }catch(e){
    if(e instanceof SyntaxError) showError("Invalid JSON response from server.");
    else showError("Network error: failed to connect to server.");
  }finally{
    setLoading(false);
  }
}

nameIn.addEventListener("input", ()=>{ clearError(); setLoading(false); });
$("#form").addEventListener("submit", (ev)=>{ ev.preventDefault(); fetchAnimal(nameIn.value.trim(), false); });

// Returning from the payment gate: let its session settle, then retry once
const fromUrl = new URLSearchParams(window.location.search).get("name");
if(fromUrl){
  nameIn.value = fromUrl;
  setTimeout(()=>fetchAnimal(fromUrl, true), SETTLE_MS);
}
</script>
</body></html>
""".replace("__API__", API_PATH).replace("__SETTLE__", str(int(RETRY_SETTLE_SECONDS * 1000)))
    return Response(html, mimetype="text/html")

def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Serve the spirit animal API and page")
    ap.add_argument("--data", default=None, help="Path to animals.json (default: packaged catalog)")
    ap.add_argument("--host", default="127.0.0.1")
    ap.add_argument("--port", type=int, default=8000)
    ap.add_argument("--no-payment", action="store_true", help="Serve the API without the payment gate")
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args(argv)

    engine = Engine().load(args.data, verbose=args.verbose)
    init_app(engine, OpenGate() if args.no_payment else None)

    try:
        app.run(host=args.host, port=args.port, debug=args.verbose)
    finally:
        engine.shutdown()
    return 0

if __name__ == "__main__":
    raise SystemExit(main())

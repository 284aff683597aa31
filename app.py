import logging

from flask import Flask, current_app, jsonify, request, session, redirect, url_for

from pokematchup import config
from pokematchup.cache import ResourceCache
from pokematchup.errors import NotFoundError, PokeAPIError
from pokematchup.logger import setup_logging, log_action
from pokematchup.models import to_jsonable
from pokematchup.normalize import pick_variant, search_species
from pokematchup.panel import Matchup
from pokematchup.pokeapi import PokeAPIClient
from pokematchup.type_effectiveness import compute_type_effectiveness, rank_moves, summarize


def create_app(client: PokeAPIClient | None = None) -> Flask:
    setup_logging()
    app = Flask(__name__)
    app.secret_key = config.SECRET_KEY
    # one cache + client for the whole process
    app.extensions["pokeapi"] = client or PokeAPIClient(ResourceCache())
    _register(app)
    return app


def _client() -> PokeAPIClient:
    return current_app.extensions["pokeapi"]


def _register(app: Flask):

    @app.errorhandler(NotFoundError)
    def not_found(e):
        return jsonify(error=str(e)), 404

    @app.errorhandler(PokeAPIError)
    def upstream_failed(e):
        log_action(f"ERROR {request.path}: {e}", logging.ERROR)
        return jsonify(error=str(e)), 502

    @app.route('/')
    def home():
        return "<h1>Pokémon Matchup</h1><p>Try /matchup?left=bulbasaur&right=charmander</p>"

    @app.route('/toggle_logging')
    def toggle_logging():
        cache = _client().cache
        cache.set_verbose(not cache.verbose)
        state = "enabled" if cache.verbose else "disabled"
        return redirect(url_for('cache_stats', message=f"Verbose logging {state}"))

    @app.route('/api/cache')
    def cache_stats():
        cache = _client().cache
        return jsonify(sizes=cache.stats(), verbose=cache.verbose,
                       message=request.args.get("message"))

    # ---- core lookups ------------------------------------------------------ #

    @app.route('/api/types')
    def types():
        return jsonify(to_jsonable(_client().list_all_type_relations()))

    @app.route('/api/species')
    def species_list():
        species = _client().list_all_species()
        q = request.args.get("q")
        if q is not None:
            species = search_species(q, species)
        return jsonify(to_jsonable(species))

    @app.route('/api/species/<id_or_name>')
    def species_detail(id_or_name):
        species = _client().resolve_species(id_or_name)
        out = to_jsonable(species)
        # search text decides regional forms; otherwise the species name does
        out["selected_variant"] = pick_variant(species.varieties, request.args.get("hint") or species.name)
        return jsonify(out)

    @app.route('/api/evolution/<id_or_name>')
    def evolution(id_or_name):
        c = _client()
        return jsonify(to_jsonable(c.resolve_evolution(c.resolve_species(id_or_name))))

    @app.route('/api/pokemon/<variant>')
    def pokemon_detail(variant):
        c = _client()
        form = c.resolve_form(variant)
        multipliers = compute_type_effectiveness(form.types, c.list_all_type_relations())
        out = to_jsonable(form)
        out.pop("moves", None)
        out["multipliers"] = multipliers
        out.update(summarize(multipliers))
        return jsonify(out)

    @app.route('/api/pokemon/<variant>/moves')
    def pokemon_moves(variant):
        c = _client()
        form = c.resolve_form(variant)
        moves = c.load_moves(form)
        vs = request.args.get("vs")
        opponent = None
        if vs:
            opponent = compute_type_effectiveness(c.resolve_form(vs).types, c.list_all_type_relations())
        return jsonify(pokemon=form.name, vs=vs, moves=to_jsonable(rank_moves(moves, opponent)))

    @app.route('/api/moves/<name>')
    def move_detail(name):
        return jsonify(to_jsonable(_client().fetch_move(name)))

    # ---- side-by-side -------------------------------------------------------- #

    @app.route('/matchup')
    def matchup():
        a = request.args
        m = Matchup(_client()).load(
            left=a.get("left"), right=a.get("right"),
            left_hint=a.get("left_hint"), right_hint=a.get("right_hint"),
            left_form=a.get("left_form"), right_form=a.get("right_form"),
        )
        return jsonify(m.to_dict())

    # ---- user settings (opaque to the core) ----------------------------------- #

    @app.route('/api/settings', methods=["GET", "POST"])
    def settings():
        if request.method == "POST":
            body = request.get_json(silent=True) or request.form
            if "muted" in body:
                session["muted"] = str(body["muted"]).lower() in ("1", "true", "yes", "on")
            if "volume" in body:
                try:
                    session["volume"] = max(0, min(100, int(body["volume"])))
                except (TypeError, ValueError):
                    return jsonify(error="volume must be an integer 0-100"), 400
        return jsonify(muted=session.get("muted", False), volume=session.get("volume", 50))


app = create_app()

if __name__ == '__main__':
    app.run(debug=True)

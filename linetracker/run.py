import os
import argparse
import importlib.util
import time

import joblib

from linetracker import seedfinder as SF
from linetracker import trackfitter as TF
from linetracker import vertexfitter as VF
from linetracker import minimizer
from linetracker import geometry as Geometry
from linetracker import config_default as config
import functools; print = functools.partial(print, flush=True) #make python actually flush the output!


def load_source(name, path):
    """Import a python file by its path"""
    spec = importlib.util.spec_from_file_location(name, path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def process_event(event, geometry, parameters=None, debug=False):
    """
    Seed, join, fit and vertex one event

    INPUT:
    ---
    event: list of Point
    geometry: Geometry
    parameters: dict
        configuration, defaults to config_default.parameters

    RETURN:
    ---
    dict with "seeds", "tracks" (converged tracks only) and "vertex"
    """
    parameters = parameters or config.parameters
    debug = debug or parameters["debug"]

    finder = SF.SeedFinder(parameters, debug=(debug or parameters["debug_seeder"]))
    seeds = finder.run(event)

    tracks = TF.fit_seeds(seeds, geometry,
                          settings=minimizer.settings_from(parameters, "track"),
                          fixed=parameters["fit_track_FixedCoordinate"],
                          debug=(debug or parameters["debug_tracker"]))
    tracks = [track for track in tracks if track.fit_converged()]

    vertex = VF.Vertex(tracks, settings=minimizer.settings_from(parameters, "vertex"),
                       debug=(debug or parameters["debug_vertexer"]))
    if parameters["cut_vertex_PruneChi2"] > 0 and vertex.fit_converged():
        vertex.prune_on_chi_squared(parameters["cut_vertex_PruneChi2"])

    return {"seeds": seeds, "tracks": tracks, "vertex": vertex}


def main():

    parser = argparse.ArgumentParser(
                prog='linetracker',
                description='Reconstructing straight tracks and their vertex from 4D detector hits.',)
    parser.add_argument('input_filename',    type=str, help='Path: input filename')
    parser.add_argument('output_directory',  type=str, help='Path: output directory')
    parser.add_argument('--output_suffix',   type=str, default="", help='Path: (optional) suffix to the output filename')
    parser.add_argument('--io',     default="io_joblib",  type=str, help='IO module to parse the input file. Default is io_joblib in ./io_user/. Provide the full path if the IO file is not under ./io_user/')
    parser.add_argument('--config', default="",  type=str, help='Path: configuration file. Default configuration (config_default.py) will be used if no config file is provided.')
    parser.add_argument('--geometry', default="",  type=str, help='Path: joblib file holding a Geometry object. Default is the layered geometry of the configuration.')
    parser.add_argument('--printn', default=1000,  type=int, help='Print every [printn] event while loading')
    parser.add_argument('--debug',  action='store_true', help='Show debug info')
    parser.add_argument('--overwrite',  action='store_true', help='Overwrite the existing output file')
    args = parser.parse_args()

    # Initiate file IO
    current_dir = os.path.dirname(os.path.realpath(__file__)) # Path to this python file
    io_full_path = current_dir + f"/io_user/{args.io}.py" if not os.path.exists(args.io) else args.io
    io_user = load_source("io_user", io_full_path)
    output_filename = os.path.abspath(args.output_directory) \
                        + "/" + os.path.splitext(os.path.basename(args.input_filename))[0] \
                        + args.output_suffix \
                        + ".joblib"
    if os.path.exists(output_filename) and not args.overwrite:
        print("Output file exists. Processing terminated. Use --overwrite option to force running the tracker, or assign a different suffix by --output_suffix=.")
        return

    # Parse the configuration
    if len(args.config) > 0:
        try:
            config_user = load_source("config_user", args.config)
            for key in config_user.parameters:
                config.parameters[key] = config_user.parameters[key]
        except (OSError, SyntaxError, AttributeError) as E:
            print("Error loading config file:", E)
    debug = config.parameters["debug"] or args.debug

    #-------------------------------------------------------------
    # Load the file
    events, metadata = io_user.load(args.input_filename, printn=args.printn,
                                    start_event=config.parameters["start_event"], end_event=config.parameters["end_event"])

    if len(args.geometry) > 0:
        geometry = joblib.load(args.geometry)
    elif "geometry" in metadata:
        geometry = metadata["geometry"]
    else:
        geometry = Geometry.from_parameters(config.parameters)

    # Make variables to hold the result
    results = {
        "hits": [],
        "tracks": [],
        "vertices": [],
    }

    # Some numbers for bookkeepping
    tracks_found = 0
    tracks_found_events = 0
    vertices_found = 0
    events_skipped = 0

    # Run track and vertex finding on all events
    entries = len(events)
    print(f"Running on {entries} events...")
    time_start = time.time()
    for entry, event in enumerate(events):
        if (entry+1) % config.parameters["print_n"] == 0 or debug:
            time_stop = time.time()
            print("  Event is ", entry + config.parameters["start_event"], ", time", time_stop - time_start, "seconds")

        results["hits"].append(event)
        try:
            result = process_event(event, geometry, config.parameters, debug=debug)
        except Geometry.UnresolvablePointError as E:
            print("  Event", entry + config.parameters["start_event"], "skipped:", E)
            events_skipped += 1
            results["tracks"].append([])
            results["vertices"].append([])
            continue

        vertex = result["vertex"]
        results["tracks"].append(result["tracks"])
        results["vertices"].append([vertex] if vertex.fit_converged() else [])
        tracks_found += len(result["tracks"])
        tracks_found_events += len(result["tracks"]) > 0
        vertices_found += vertex.fit_converged()
        if debug and vertex.size() > 1:
            print(vertex)

    time_stop = time.time()
    print("Finished. Total time", time_stop - time_start, "seconds")
    print("-------------------------")
    print("Summary")
    print("  Events:", entries)
    print("  Tracks:", tracks_found)
    print("  Vertices:", vertices_found)
    print("  Events with track:", tracks_found_events)
    print("  Events skipped:", events_skipped)
    print("-------------------------")

    # Save the results
    print("Writing file to disk.")
    joblib.dump(results, output_filename)
    print("Output saved as", output_filename)


if __name__ == "__main__":
    main()

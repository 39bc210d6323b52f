parameters = {}


# Run parameters
parameters["debug"]=False                   # Show debug info
parameters["debug_seeder"]=False
parameters["debug_tracker"]=False
parameters["debug_vertexer"]=False
parameters["print_n"]=10
parameters["start_event"]=0                 # 0-based index
parameters["end_event"]=1000

# Seed parameters
parameters["seed_Size"]=3                           # Number of points per seed, must be at least 3
parameters["seed_CollapseWindow"]=[1, 1, 1, 1]      # [ns, cm, cm, cm], (dt, dx, dy, dz). Points closer than this are merged
parameters["seed_LayerAxis"]="z"                    # choose one of {"t", "x", "y", "z"}
parameters["seed_LayerDepth"]=10                    # [cm] width of a layer along the layer axis
parameters["seed_LineWidth"]=25                     # [cm] maximum distance of a seed point to the seed line

# Fit parameters (passed to the minimizer)
parameters["fit_CommandName"]="MIGRAD"              # choose one of {"MIGRAD", "SIMPLEX"}
parameters["fit_PrintLevel"]=0
parameters["fit_track_ErrorDef"]=1                  # 1 for chi-square
parameters["fit_vertex_ErrorDef"]=0.5               # 0.5 for negative log likelihood
parameters["fit_MaxIterations"]=1000                # Maximum number of function calls
parameters["fit_Strategy"]=2                        # {0,1,2}, 0 is the fastest
parameters["fit_Tolerance"]=0.1                     # edm_max = 0.002 * tolerance * errordef
parameters["fit_track_FixedCoordinate"]="z"         # Fixed to remove the time-position degeneracy of the line

# Vertex parameters
parameters["cut_vertex_PruneChi2"]=15               # Drop tracks with larger chi2 to the vertex. Set to -1 to turn off

# Geometry parameters (layered box detector)
parameters["geometry_DefaultTimeError"]=1.5         # [ns]
parameters["geometry_LayerCount"]=5
parameters["geometry_BarWidthX"]=10                 # [cm]
parameters["geometry_BarWidthY"]=10                 # [cm]
parameters["geometry_BarHeight"]=1                  # [cm]
parameters["geometry_LayerSpacing"]=150             # [cm]
parameters["geometry_DisplacementX"]=10000          # [cm]
parameters["geometry_DisplacementY"]=-5000          # [cm]
parameters["geometry_EdgeLengthX"]=10000            # [cm]
parameters["geometry_EdgeLengthY"]=10000            # [cm]

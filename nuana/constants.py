"""Application-wide constants.

Histogram binning defaults follow the GENIE analysis macros the engines
were validated against.
"""

APP_VERSION = "0.1.0"

# PDG codes
PDG_ELECTRON = 11
PDG_MUON = 13
PDG_NU_MU = 14
PDG_PI0 = 111
PDG_PI_PLUS = 211
PDG_NEUTRON = 2112
PDG_PROTON = 2212

CHARGED_LEPTON_PDGS = (PDG_ELECTRON, PDG_MUON)

# Final-state particle status code
STATUS_FINAL = 1

# Kinematics histograms: (bins, low, high)
NU_ENERGY_BINNING = (50, 0.0, 10.0)  # GeV
LEPTON_ENERGY_BINNING = (50, 0.0, 10.0)  # GeV
Q2_BINNING = (50, 0.0, 5.0)  # GeV²
Q3_BINNING = (50, 0.0, 5.0)  # GeV
OMEGA_BINNING = (50, 0.0, 5.0)  # GeV
BJORKEN_X_BINNING = (50, 0.0, 1.0)
BJORKEN_Y_BINNING = (50, 0.0, 1.0)

# Energy reconstruction histograms [GeV]
RECO_ENERGY_BINNING = (50, 0.0, 5.0)

# Oscillation-weighted spectra [GeV]
OSC_ENERGY_BINNING = (100, 0.0, 5.0)

# Oscillation defaults
DEFAULT_BASELINE_KM = 810.0  # NOvA
DEFAULT_DENSITY_G_CM3 = 2.8  # Earth crust
DEFAULT_ELECTRON_FRACTION = 0.5

# Cross-section normalisation
DEFAULT_MASS_NUMBER = 1

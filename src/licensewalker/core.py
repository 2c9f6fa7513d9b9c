# Scope requested from Application Default Credentials
CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"

# License PATCH goes through the alpha surface (paths=licenses is alpha-only)
DEFAULT_API_BASE = "https://compute.googleapis.com/compute/alpha"

# Export file naming: {project_id}-instances.yml
EXPORT_FILENAME_TEMPLATE = "{project_id}-instances.yml"

RUNNING_STATUS = "RUNNING"

RHEL_8_PAYG_LICENSE = (
    "https://www.googleapis.com/compute/v1/projects/rhel-cloud/global/licenses/"
    "rhel-8-server"
)
RHEL_9_PAYG_LICENSE = (
    "https://www.googleapis.com/compute/v1/projects/rhel-cloud/global/licenses/"
    "rhel-9-server"
)

# Marker -> PAYG license URL, checked in order against lower-cased license
# identifiers (or the boot disk's source image when there are none).
PAYG_LICENSE_TABLE = [
    ("rhel-8", RHEL_8_PAYG_LICENSE),
    ("rhel-9", RHEL_9_PAYG_LICENSE),
]

# Used only for instances that carry no license metadata at all
DEFAULT_PAYG_LICENSE = RHEL_9_PAYG_LICENSE

# Timing defaults (seconds)
DEFAULT_PROPAGATION_DELAY = 5.0
DEFAULT_VERIFY_TIMEOUT = 15.0
DEFAULT_VERIFY_INTERVAL = 5.0

ADC_SETUP_HINT = """Possible solutions:
1. Run 'gcloud auth application-default login'
2. Set GOOGLE_APPLICATION_CREDENTIALS to point to a service account key file
3. Check if {adc_path} exists"""

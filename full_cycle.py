"""
Full Cycle Smoke Run for Claimflow

Walks one claim through the complete workflow against a running server:
1. Policyholder submits a claim with a photo
2. AI review assesses the damage (Vision Agent)
3. Repair shop and agent negotiate the estimate
4. Agent approves, shop repairs, policyholder picks up

Run with: python full_cycle.py [path/to/photo.png]

Prerequisites:
- API server running: uvicorn claimflow.main:app --port 8000
- Ollama running with llama3.2-vision and llama3 (without it the claim
  still completes, carrying the manual-review fallback)
"""
import os
import sys
import time

import requests

# Configuration
API_URL = os.getenv("CLAIMFLOW_API_URL", "http://localhost:8000")
DEFAULT_IMAGE_PATH = "test_rear_damage.png"

AGENT = "Insurance Agent"
SHOP = "Repair Shop"
POLICYHOLDER = "Policyholder"


# Colors for terminal output
class Colors:
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    BLUE = '\033[94m'
    BOLD = '\033[1m'
    END = '\033[0m'


def print_step(step_num: int, message: str):
    print(f"\n{Colors.BOLD}{Colors.BLUE}[Step {step_num}]{Colors.END} {message}")


def print_success(message: str):
    print(f"  {Colors.GREEN}✓ {message}{Colors.END}")


def print_warning(message: str):
    print(f"  {Colors.YELLOW}⚠ {message}{Colors.END}")


def print_error(message: str):
    print(f"  {Colors.RED}✗ {message}{Colors.END}")


def print_info(message: str):
    print(f"  → {message}")


def check_health() -> bool:
    print_step(0, "Checking API Connection")
    try:
        response = requests.get(f"{API_URL}/health", timeout=5)
    except requests.exceptions.ConnectionError:
        print_error("Cannot connect to API. Is the server running?")
        print_info("Expected: uvicorn claimflow.main:app --port 8000")
        return False
    if response.status_code != 200:
        print_error(f"API returned status {response.status_code}")
        return False
    print_success("API is healthy and responding")
    return True


def submit_claim(image_path: str):
    print_step(1, "Submitting Claim (Policyholder)")

    form = {
        "policy_number": "POL-1",
        "policyholder_name": "John Doe",
        "vehicle_model": "Honda Civic",
        "vehicle_year": "2020",
        "accident_details": "Rear-ended at a stop sign. Bumper dented.",
    }
    files = []
    if os.path.exists(image_path):
        files.append(("images", (os.path.basename(image_path), open(image_path, "rb"), "image/png")))
    else:
        print_warning(f"Image not found: {image_path}; submitting without photos")

    try:
        response = requests.post(f"{API_URL}/claims/", data=form, files=files, timeout=30)
    finally:
        for _, (_, handle, _) in files:
            handle.close()

    if response.status_code != 201:
        print_error(f"Failed to create claim: {response.text}")
        return None

    claim = response.json()["claim"]
    print_success(f"Claim created with ID: {claim['id'][:8]}...")
    print_info(f"Status: {claim['status']}")
    return claim["id"]


def wait_for_estimate(claim_id: str, timeout: float = 180.0):
    print_step(2, "Waiting for AI Review")
    start_time = time.time()
    while time.time() - start_time < timeout:
        claim = requests.get(f"{API_URL}/claims/{claim_id}", timeout=5).json()["claim"]
        if claim["status"] != "AI Review":
            elapsed = time.time() - start_time
            print_success(f"AI review finished in {elapsed:.1f}s with status {claim['status']}")
            print_info(f"Assessment: {(claim['ai_damage_assessment'] or '')[:100]}")
            if claim["ai_estimate"]:
                print_info(f"AI Estimate: ${claim['ai_estimate']['total_cost']:,.2f}")
            print_info(f"Suggested shops: {len(claim['suggested_shops'])}")
            return claim
        time.sleep(2)
    print_error("Timed out waiting for AI review")
    return None


def negotiate(claim_id: str):
    print_step(3, "Negotiating the Estimate")
    for role, amount, reason in (
        (SHOP, 1500, "Hidden frame damage found"),
        (AGENT, 1800, "Includes rental coverage"),
    ):
        response = requests.post(
            f"{API_URL}/claims/{claim_id}/estimates",
            json={"role": role, "total_amount": amount, "justification": reason},
            timeout=5
        )
        if response.status_code != 200:
            print_error(f"{role} proposal failed: {response.text}")
            return False
        print_success(response.json()["message"])
    return True


def walk_lifecycle(claim_id: str) -> bool:
    print_step(4, "Approving, Repairing and Closing")

    response = requests.post(f"{API_URL}/claims/{claim_id}/approve", json={"role": AGENT}, timeout=5)
    if response.status_code != 200:
        print_error(f"Approval failed: {response.text}")
        return False
    print_success("Estimate approved")

    for role, intent in (
        (SHOP, "receive_vehicle"),
        (SHOP, "complete_repair"),
        (POLICYHOLDER, "confirm_pickup"),
    ):
        response = requests.post(
            f"{API_URL}/claims/{claim_id}/transitions",
            json={"role": role, "intent": intent},
            timeout=5
        )
        if response.status_code != 200:
            print_error(f"{intent} failed: {response.text}")
            return False
        print_success(response.json()["message"])

    response = requests.post(
        f"{API_URL}/claims/{claim_id}/reject",
        json={"reason": "Should not be possible"},
        timeout=5
    )
    if response.status_code == 409:
        print_success("Closed claim refused further transitions")
    else:
        print_warning(f"Expected 409 after close, got {response.status_code}")
    return True


def run_full_cycle(image_path: str = DEFAULT_IMAGE_PATH):
    """Run the complete cycle."""
    print(f"\n{'='*60}")
    print(f"{Colors.BOLD}  FULL CYCLE - Claimflow{Colors.END}")
    print(f"{'='*60}")
    print(f"\nAPI URL: {API_URL}")

    if not check_health():
        return

    claim_id = submit_claim(image_path)
    if not claim_id:
        return

    claim = wait_for_estimate(claim_id)
    if not claim or claim["status"] != "Estimated":
        print_warning("Claim did not reach Estimated; stopping")
        return

    if not negotiate(claim_id):
        return

    if not walk_lifecycle(claim_id):
        return

    print(f"\n{'='*60}")
    print(f"{Colors.BOLD}{Colors.GREEN}  ✓ FULL CYCLE COMPLETE{Colors.END}")
    print(f"{'='*60}")
    print(f"\nClaim ID: {claim_id}")
    print(f"Check API docs: {API_URL}/docs")


if __name__ == "__main__":
    run_full_cycle(sys.argv[1] if len(sys.argv) > 1 else DEFAULT_IMAGE_PATH)

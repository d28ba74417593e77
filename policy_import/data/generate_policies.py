#!/usr/bin/env python3
# Generates a deterministic policy export in the upload column layout.
import csv, io, os, random
from datetime import date, timedelta

COLUMNS = ["agent","userType","policy_mode","producer","policy_number","premium_amount","policy_type","company_name","category_name","policy_start_date","policy_end_date","csr","account_name","email","gender","firstname","city","account_type","phone","address","state","zip","dob"]

AGENTS   = ["Alex Watts","Brad Lee","Chris Diaz","Dana Hall","Evan Shaw"]
CARRIERS = ["Integon Gen Ins Corp","Acme Corp","National Indemnity","Harbor Mutual","Summit Casualty"]
LOBS     = ["Commercial Auto","Personal Auto","Homeowners","General Liability","Workers Comp"]
NAMES    = ["Lura","Torie","Adelina","Marcus","Priya","Jon","Keiko","Omar","Rosa","Tariq"]
STATES   = [("CA","Fresno","93650"),("NY","Albany","12207"),("TX","Austin","73301"),("FL","Tampa","33601"),("OH","Dayton","45402")]
MODES    = [1,6,12]

def mmddyyyy(d): return d.strftime("%m/%d/%Y")

def sample_row(rng, i, people):
    first, email, dob, gender = people[rng.randrange(len(people))]
    st, city, zp = rng.choice(STATES)
    start = date(2024,1,1) + timedelta(days=rng.randint(0,365))
    end   = start + timedelta(days=30*rng.choice(MODES))
    return {
        "agent": rng.choice(AGENTS),
        "userType": rng.choice(["Active Client","Prospect"]),
        "policy_mode": rng.choice(MODES),
        "producer": rng.choice(AGENTS),
        "policy_number": f"POL{i:06d}",
        "premium_amount": round(rng.lognormvariate(6.8, 0.6), 2),  # ~1100 avg
        "policy_type": rng.choice(["Single","Package"]),
        "company_name": rng.choice(CARRIERS),
        "category_name": rng.choice(LOBS),
        "policy_start_date": mmddyyyy(start),
        "policy_end_date": mmddyyyy(end),
        "csr": rng.choice(AGENTS),
        "account_name": f"{first} Account",
        "email": email,
        "gender": gender,
        "firstname": first,
        "city": city,
        "account_type": rng.choice(["Personal","Commercial"]),
        "phone": f"{rng.randint(200,999)}{rng.randint(1000000,9999999)}",
        "address": f"{rng.randint(1,9999)} {rng.choice(['Oak','Elm','Pine','Main'])} St",
        "state": st,
        "zip": zp,
        "dob": mmddyyyy(dob),
    }

def generate_rows(n, seed=2025):
    rng = random.Random(seed)
    people = []
    for name in NAMES:
        dob = date(1950,1,1) + timedelta(days=rng.randint(0,18000))
        people.append((name, f"{name.lower()}@example.com", dob, rng.choice(["Male","Female"])))
    return [sample_row(rng, i, people) for i in range(n)]

def generate_csv(n=1000, seed=2025):
    out = io.StringIO()
    w = csv.DictWriter(out, fieldnames=COLUMNS, lineterminator="\n")
    w.writeheader()
    w.writerows(generate_rows(n, seed))
    return out.getvalue()

def main(n=1000):
    os.makedirs("data", exist_ok=True)
    with open("data/policies.csv","w",newline="") as f:
        f.write(generate_csv(n))
    print("Wrote data/policies.csv")

if __name__=="__main__": main()
